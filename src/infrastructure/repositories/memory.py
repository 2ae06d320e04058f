"""In-memory persistence adapters with structured logging.

These implement the document-store ports for development, scripts and
tests. Documents are copied on the way in and on the way out so callers
never share mutable state with the store.
"""

import copy
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.application.ports import (
    ColumnMetadataRepository,
    EngineSettingsRepository,
    OrderDocumentWriter,
    OrderSnapshotSource,
)
from src.domain.orders.value_objects import (
    ColumnDef,
    CustomCalculation,
    FeeSchedule,
    PackagingRule,
)
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id


class InMemoryDocumentStore(OrderSnapshotSource, OrderDocumentWriter):
    """
    In-memory document store keyed by collection and document id.

    Includes structured logging of every read and batch write.
    """

    def __init__(self, max_batch_size: int = 500):
        """
        Initialize the store.

        Args:
            max_batch_size: Largest batch accepted by write_batch
        """
        self._logger = get_logger("infrastructure.document_store")
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._max_batch_size = max_batch_size
        self.batches_written = 0

        self._logger.info(
            "document_store_initialized",
            implementation="in_memory",
            max_batch_size=max_batch_size,
            correlation_id=get_correlation_id(),
        )

    def fetch(
        self, collection: str, constraints: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch documents, optionally filtered by field equality."""
        start_time = time.time()
        documents = []
        for doc_id, document in self._collections.get(collection, {}).items():
            if constraints and any(document.get(k) != v for k, v in constraints.items()):
                continue
            documents.append({**copy.deepcopy(document), "id": doc_id})

        self._logger.debug(
            "document_store_fetch",
            collection=collection,
            constrained=bool(constraints),
            result_count=len(documents),
            duration_ms=(time.time() - start_time) * 1000,
            correlation_id=get_correlation_id(),
        )
        return documents

    def write_batch(self, collection: str, documents: Sequence[Mapping[str, Any]]) -> None:
        """
        Write a batch of documents.

        Raises:
            ValueError: If the batch is larger than the store accepts or a
                document has no id
        """
        if len(documents) > self._max_batch_size:
            self._logger.error(
                "document_store_batch_rejected",
                collection=collection,
                batch_size=len(documents),
                max_batch_size=self._max_batch_size,
                correlation_id=get_correlation_id(),
            )
            raise ValueError(f"Batch of {len(documents)} exceeds limit of {self._max_batch_size}")

        staged: Dict[str, Dict[str, Any]] = {}
        for document in documents:
            doc_id = document.get("id")
            if not doc_id:
                raise ValueError("Document without id")
            staged[str(doc_id)] = copy.deepcopy(dict(document))

        self._collections.setdefault(collection, {}).update(staged)
        self.batches_written += 1

        self._logger.info(
            "document_store_batch_written",
            collection=collection,
            batch_size=len(documents),
            correlation_id=get_correlation_id(),
        )

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))


class InMemoryEngineSettingsRepository(EngineSettingsRepository):
    """In-memory engine settings."""

    def __init__(
        self,
        calculations: Sequence[CustomCalculation] = (),
        packaging_rules: Sequence[PackagingRule] = (),
        fee_schedules: Sequence[FeeSchedule] = (),
    ):
        self._logger = get_logger("infrastructure.engine_settings")
        self._calculations = list(calculations)
        self._packaging_rules = list(packaging_rules)
        self._fee_schedules = list(fee_schedules)

    def get_calculations(self) -> List[CustomCalculation]:
        return list(self._calculations)

    def save_calculations(self, calculations: Sequence[CustomCalculation]) -> None:
        self._calculations = list(calculations)
        self._logger.info(
            "calculations_saved",
            count=len(self._calculations),
            correlation_id=get_correlation_id(),
        )

    def get_packaging_rules(self) -> List[PackagingRule]:
        return list(self._packaging_rules)

    def get_fee_schedules(self) -> List[FeeSchedule]:
        return list(self._fee_schedules)


class InMemoryColumnMetadataRepository(ColumnMetadataRepository):
    """In-memory column metadata and uploaded file names, per collection."""

    def __init__(self):
        self._columns: Dict[str, List[ColumnDef]] = {}
        self._file_names: Dict[str, List[str]] = {}

    def get_columns(self, collection: str) -> List[ColumnDef]:
        return list(self._columns.get(collection, []))

    def save_columns(self, collection: str, columns: Sequence[ColumnDef]) -> None:
        self._columns[collection] = list(columns)

    def get_uploaded_file_names(self, collection: str) -> List[str]:
        return list(self._file_names.get(collection, []))

    def save_uploaded_file_names(self, collection: str, file_names: Sequence[str]) -> None:
        self._file_names[collection] = list(file_names)
