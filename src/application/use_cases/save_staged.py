"""Save staged rows use case: chunked batch writes plus column metadata update."""

import time
from dataclasses import dataclass
from typing import List, Optional, Set

from src.application.errors import ValidationError
from src.application.ports import (
    ColumnMetadataRepository,
    EngineSettingsRepository,
    OrderDocumentWriter,
)
from src.application.use_cases.stage_import import StagingArea
from src.domain.orders.columns import columns_for_documents
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id, with_batch_context

DEFAULT_BATCH_SIZE = 450


@dataclass(frozen=True)
class SaveStagedRowsResponse:
    """Response DTO for saving staged rows."""
    saved_count: int
    batches: int
    columns_count: int
    uploaded_file_names: List[str]


class SaveStagedRowsUseCase:
    """Use case for persisting the staging area."""

    def __init__(
        self,
        writer: OrderDocumentWriter,
        metadata_repository: ColumnMetadataRepository,
        settings_repository: Optional[EngineSettingsRepository] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """
        Initialize use case with dependencies.

        Args:
            writer: Batch document writer
            metadata_repository: Column metadata and uploaded file names
            settings_repository: Calculations, used to label custom columns
            batch_size: Documents per write batch
        """
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._writer = writer
        self._metadata_repository = metadata_repository
        self._settings_repository = settings_repository
        self._batch_size = batch_size
        self._logger = get_logger("application.save_staged")

    @with_batch_context()
    def execute(self, staging: StagingArea) -> SaveStagedRowsResponse:
        """
        Write staged rows in chunks, then update metadata and clear staging.

        When a write fails the error propagates: metadata is not updated and
        the staging area keeps its rows.

        Raises:
            ValidationError: If there is nothing to save
        """
        if not staging.rows:
            raise ValidationError("staging", "no staged rows to save")

        start_time = time.time()
        correlation_id = get_correlation_id()
        collection = staging.collection
        rows = list(staging.rows)

        batches = 0
        for offset in range(0, len(rows), self._batch_size):
            chunk = rows[offset:offset + self._batch_size]
            self._writer.write_batch(collection, chunk)
            batches += 1
            self._logger.debug(
                "staged_batch_written",
                collection=collection,
                batch=batches,
                size=len(chunk),
                correlation_id=correlation_id,
            )

        keys: Set[str] = set()
        for row in rows:
            keys.update(row.keys())
        calculations = self._settings_repository.get_calculations() if self._settings_repository else []
        columns = columns_for_documents(
            self._metadata_repository.get_columns(collection),
            sorted(keys),
            calculations,
        )
        self._metadata_repository.save_columns(collection, columns)

        uploaded = list(self._metadata_repository.get_uploaded_file_names(collection))
        for name in staging.file_names:
            if name not in uploaded:
                uploaded.append(name)
        self._metadata_repository.save_uploaded_file_names(collection, uploaded)

        staging.clear()

        self._logger.info(
            "staged_rows_saved",
            collection=collection,
            saved_count=len(rows),
            batches=batches,
            duration_ms=(time.time() - start_time) * 1000,
            correlation_id=correlation_id,
        )

        return SaveStagedRowsResponse(
            saved_count=len(rows),
            batches=batches,
            columns_count=len(columns),
            uploaded_file_names=uploaded,
        )
