"""Stage import use case: normalize uploaded sheets into not-yet-persisted rows."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.application.errors import ValidationError
from src.application.ports import SALES_COLLECTION, SOURCE_COLLECTIONS, Clock
from src.domain.orders.codes import pick_code
from src.domain.orders.normalizer import CanonicalRow, FieldNormalizer
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id, with_batch_context


@dataclass(frozen=True)
class ImportDataset:
    """One uploaded tabular source."""
    rows: Sequence[Mapping[str, Any]]
    file_name: str
    assoc_key: Optional[str] = None


@dataclass
class StagingArea:
    """Rows staged in the current import session, per collection."""
    collection: str
    rows: List[CanonicalRow] = field(default_factory=list)
    file_names: List[str] = field(default_factory=list)
    # Only grows: removing a file or clearing never frees an id
    next_sequence: int = 0

    def next_row_id(self, upload_ms: int) -> str:
        row_id = f"staged-{upload_ms}-{self.next_sequence}"
        self.next_sequence += 1
        return row_id

    def clear(self) -> None:
        self.rows.clear()
        self.file_names.clear()


@dataclass(frozen=True)
class StageImportResponse:
    """Response DTO for staging."""
    staged_count: int
    skipped_count: int
    file_names: List[str]


def _source_files(row: Mapping[str, Any]) -> List[str]:
    # Merged rows may carry "a.xlsx, b.xlsx"
    return [name.strip() for name in str(row.get("sourceFile") or "").split(",") if name.strip()]


class StageImportUseCase:
    """Use case for normalizing uploaded datasets into a staging area."""

    def __init__(self, clock: Clock) -> None:
        """
        Initialize use case with dependencies.

        Args:
            clock: Clock used for upload timestamps and staged ids
        """
        self._clock = clock
        self._logger = get_logger("application.stage_import")

    @with_batch_context()
    def execute(self, staging: StagingArea, datasets: Sequence[ImportDataset]) -> StageImportResponse:
        """
        Normalize datasets and append them to the staging area.

        Sales rows are kept even without a code (grouping counts them as
        unassignable); logistics and cost rows without a code are skipped.

        Raises:
            ValidationError: If the collection or a dataset is invalid
        """
        self._validate(staging, datasets)

        normalizer = FieldNormalizer.for_collection(staging.collection)
        upload_ms = self._clock.now_ms()
        staged: List[CanonicalRow] = []
        skipped = 0

        for dataset in datasets:
            for index, raw in enumerate(dataset.rows):
                row = normalizer.normalize_row(raw)
                code = pick_code(raw, row, dataset.assoc_key)
                if code:
                    row["codigo"] = code
                elif staging.collection != SALES_COLLECTION:
                    skipped += 1
                    continue

                row["id"] = staging.next_row_id(upload_ms)
                row["sourceFile"] = dataset.file_name
                row["uploadTimestamp"] = upload_ms
                row["linha"] = index
                staged.append(row)

            if dataset.file_name not in staging.file_names:
                staging.file_names.append(dataset.file_name)

        staging.rows.extend(staged)

        self._logger.info(
            "import_staged",
            collection=staging.collection,
            datasets=len(datasets),
            staged_count=len(staged),
            skipped_count=skipped,
            correlation_id=get_correlation_id(),
        )

        return StageImportResponse(
            staged_count=len(staged),
            skipped_count=skipped,
            file_names=list(staging.file_names),
        )

    def remove_file(self, staging: StagingArea, file_name: str) -> int:
        """
        Drop the staged rows of one file.

        Returns:
            Number of rows removed
        """
        before = len(staging.rows)
        staging.rows[:] = [row for row in staging.rows if file_name not in _source_files(row)]
        if file_name in staging.file_names:
            staging.file_names.remove(file_name)

        removed = before - len(staging.rows)
        self._logger.info(
            "staged_file_removed",
            collection=staging.collection,
            removed_count=removed,
            correlation_id=get_correlation_id(),
        )
        return removed

    def _validate(self, staging: StagingArea, datasets: Sequence[ImportDataset]) -> None:
        if staging.collection not in SOURCE_COLLECTIONS:
            raise ValidationError("collection", f"unknown collection {staging.collection!r}")
        if not datasets:
            raise ValidationError("datasets", "at least one dataset is required")
        for dataset in datasets:
            if not dataset.file_name or not dataset.file_name.strip():
                raise ValidationError("file_name", "file name is required")
