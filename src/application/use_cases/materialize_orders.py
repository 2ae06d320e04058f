"""Materialize orders use case: snapshot + staged rows -> per-order records."""

import time
from dataclasses import dataclass, field
from datetime import date, datetime, time as dt_time
from typing import Any, Dict, List, Optional, Sequence

from src.application.ports import (
    COSTS_COLLECTION,
    LOGISTICS_COLLECTION,
    SALES_COLLECTION,
    ColumnMetadataRepository,
    EngineSettingsRepository,
    OrderSnapshotSource,
)
from src.application.errors import ValidationError
from src.domain.orders.columns import merge_columns
from src.domain.orders.formulas import CalculationFailure
from src.domain.orders.normalizer import CanonicalRow, coerce_date
from src.domain.orders.pipeline import OrderMetricsPipeline
from src.domain.orders.sources import attach_sources
from src.domain.orders.summary import summarize
from src.domain.orders.value_objects import ColumnDef
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id, with_batch_context


@dataclass(frozen=True)
class MaterializeOrdersRequest:
    """Request DTO for order materialization."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    staged_rows: Sequence[CanonicalRow] = ()


@dataclass(frozen=True)
class MaterializeOrdersResponse:
    """Response DTO for order materialization."""
    orders: List[Dict[str, Any]]
    columns: List[ColumnDef]
    summary: Dict[str, float]
    unassignable: int
    failures: List[CalculationFailure] = field(default_factory=list)


def _start_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, dt_time.min)


def _end_of_day(value: date) -> datetime:
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, dt_time.max)


def _naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None) if value.tzinfo is not None else value


def filter_by_period(
    rows: Sequence[CanonicalRow], date_from: Optional[date], date_to: Optional[date] = None
) -> List[CanonicalRow]:
    """
    Keep rows whose date lies within ``[from, end_of_day(to)]``.

    Without ``from`` every row is kept; without ``to`` the period is the
    single day of ``from``. Undated rows are dropped when filtering.
    """
    if date_from is None:
        return list(rows)
    lower = _naive(_start_of_day(date_from))
    upper = _naive(_end_of_day(date_to or date_from))

    kept = []
    for row in rows:
        row_date = coerce_date(row.get("data"))
        if row_date is not None and lower <= _naive(row_date) <= upper:
            kept.append(row)
    return kept


class MaterializeOrdersUseCase:
    """Use case for recomputing every order from the current snapshot."""

    def __init__(
        self,
        snapshot_source: OrderSnapshotSource,
        settings_repository: EngineSettingsRepository,
        metadata_repository: ColumnMetadataRepository,
        pipeline: Optional[OrderMetricsPipeline] = None,
    ) -> None:
        """
        Initialize use case with dependencies.

        Args:
            snapshot_source: Persisted sales, logistics and cost records
            settings_repository: Calculations, packaging rules, fee schedules
            metadata_repository: Column metadata
            pipeline: Order metrics pipeline
        """
        self._snapshot_source = snapshot_source
        self._settings_repository = settings_repository
        self._metadata_repository = metadata_repository
        self._pipeline = pipeline or OrderMetricsPipeline()
        self._logger = get_logger("application.materialize_orders")

    @with_batch_context()
    def execute(self, request: MaterializeOrdersRequest) -> MaterializeOrdersResponse:
        """
        Execute order materialization.

        Raises:
            ValidationError: If the period is inverted
        """
        if (
            request.date_from
            and request.date_to
            and _end_of_day(request.date_to) < _naive(_start_of_day(request.date_from))
        ):
            raise ValidationError("date_to", "end of period precedes its start")

        start_time = time.time()
        correlation_id = get_correlation_id()

        sales = list(self._snapshot_source.fetch(SALES_COLLECTION)) + list(request.staged_rows)
        rows = attach_sources(
            sales,
            self._snapshot_source.fetch(LOGISTICS_COLLECTION),
            self._snapshot_source.fetch(COSTS_COLLECTION),
        )
        rows = filter_by_period(rows, request.date_from, request.date_to)

        calculations = self._settings_repository.get_calculations()
        columns = merge_columns(self._metadata_repository.get_columns(SALES_COLLECTION), calculations)

        result = self._pipeline.run(
            rows,
            packaging_rules=self._settings_repository.get_packaging_rules(),
            fee_schedules=self._settings_repository.get_fee_schedules(),
            calculations=calculations,
            columns=columns,
        )

        for failure in result.failures:
            self._logger.warning(
                "custom_calculation_failed",
                calculation_id=failure.calculation_id,
                order_code=failure.order_code,
                error_type=failure.error_type,
                correlation_id=correlation_id,
            )

        self._logger.info(
            "orders_materialized",
            rows=len(rows),
            orders=len(result.orders),
            unassignable=result.unassignable,
            failures=len(result.failures),
            duration_ms=(time.time() - start_time) * 1000,
            correlation_id=correlation_id,
        )

        return MaterializeOrdersResponse(
            orders=result.documents(),
            columns=columns,
            summary=summarize(result.orders).to_dict(),
            unassignable=result.unassignable,
            failures=list(result.failures),
        )
