"""
Pipeline de métricas de pedidos.

Executa, em ordem, agrupamento, resolução de receita e custos, embalagens,
taxas de cartão e cálculos customizados. É puro e síncrono: cada execução
recalcula todos os pedidos a partir do snapshot recebido.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from .aggregates import OrderGroup
from .columns import COLUMN_LABELS
from .fees import FeeCalculator
from .formulas import CalculationFailure, CustomCalculationEngine
from .grouping import group_rows
from .normalizer import CanonicalRow
from .packaging import PackagingAllocator
from .revenue import resolve_financials
from .value_objects import ColumnDef, CustomCalculation, FeeSchedule, PackagingRule

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Resultado de uma materialização."""

    orders: List[OrderGroup] = field(default_factory=list)
    unassignable: int = 0
    failures: List[CalculationFailure] = field(default_factory=list)
    execution_time_ms: float = 0.0

    def documents(self) -> List[dict]:
        return [order.to_document() for order in self.orders]


class OrderMetricsPipeline:
    """Orquestra os estágios do engine de pedidos."""

    def run(
        self,
        rows: Iterable[CanonicalRow],
        packaging_rules: Sequence[PackagingRule] = (),
        fee_schedules: Sequence[FeeSchedule] = (),
        calculations: Sequence[CustomCalculation] = (),
        columns: Sequence[ColumnDef] = (),
    ) -> PipelineResult:
        """
        Materializa os pedidos a partir das linhas canônicas.

        Args:
            rows: Linhas canônicas (persistidas + staged), já reconciliadas
            packaging_rules: Regras de embalagem
            fee_schedules: Tabelas de taxas das operadoras
            calculations: Cálculos customizados, na ordem de avaliação
            columns: Metadados de colunas (resolução de referência por rótulo)

        Returns:
            PipelineResult com pedidos, linhas sem código e falhas de cálculo
        """
        start_time = time.perf_counter()

        grouping = group_rows(rows)
        allocator = PackagingAllocator(packaging_rules)
        fees = FeeCalculator(fee_schedules)

        for group in grouping.groups:
            resolve_financials(group)
            allocator.allocate(group)
            fees.calculate(group)

        engine = CustomCalculationEngine(calculations, columns, known_fields=COLUMN_LABELS)
        report = engine.apply_all(grouping.groups)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Pipeline concluído: {len(grouping.groups)} pedidos, "
            f"{grouping.unassignable} linhas sem código, {len(report.failures)} falhas em {elapsed_ms:.2f}ms"
        )

        return PipelineResult(
            orders=grouping.groups,
            unassignable=grouping.unassignable,
            failures=report.failures,
            execution_time_ms=elapsed_ms,
        )
