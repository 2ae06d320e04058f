"""
Engine de cálculos customizados.

Avalia cada CustomCalculation sobre cada pedido. Falhas de avaliação são
locais: a célula vira 0, a falha é logada e registrada no relatório de
execução, e os demais pedidos e cálculos seguem normalmente.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from src.domain.errors import FormulaError, UnknownColumnError

from ..aggregates import DERIVED_FIELDS, OrderGroup
from ..normalizer import is_empty_cell, to_number
from ..value_objects import ColumnDef, CustomCalculation
from .evaluator import evaluate_formula

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculationFailure:
    """Falha de avaliação de um cálculo para um pedido."""

    calculation_id: str
    calculation_name: str
    order_code: str
    error_type: str
    message: str


@dataclass
class CalculationReport:
    """Diagnóstico de uma execução do engine."""

    evaluated: int = 0
    skipped: int = 0
    failures: List[CalculationFailure] = field(default_factory=list)

    def add_failure(self, failure: CalculationFailure) -> None:
        self.failures.append(failure)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0


class ColumnResolver:
    """
    Resolve referências de coluna de uma fórmula para um pedido.

    Ordem: campo do pedido pelo id, ``customData`` pelo id, coluna cujo
    rótulo é igual à referência. Campo conhecido mas vazio vale 0;
    referência desconhecida levanta ``UnknownColumnError``.
    """

    def __init__(self, group: OrderGroup, columns_by_label: Dict[str, ColumnDef], known_ids: Set[str]):
        self.group = group
        self.columns_by_label = columns_by_label
        self.known_ids = known_ids

    def _lookup(self, key: str):
        value = self.group.field_value(key)
        if is_empty_cell(value):
            value = self.group.custom_data.get(key)
        return value

    def __call__(self, reference: str, position: int = 0) -> float:
        value = self._lookup(reference)
        column = self.columns_by_label.get(reference)
        if is_empty_cell(value) and column is not None:
            value = self._lookup(column.id)

        if not is_empty_cell(value):
            return to_number(value)

        if reference in self.known_ids or column is not None or self.group.has_field(reference):
            return 0.0
        raise UnknownColumnError(reference, position)


def snapshot_fields(groups: Iterable[OrderGroup]) -> Set[str]:
    """Nomes de campo presentes no cabeçalho ou em alguma linha dos pedidos."""
    fields: Set[str] = set()
    for group in groups:
        fields.update(group.header)
        for row in group.rows:
            fields.update(row)
    return fields


class CustomCalculationEngine:
    """Aplica cálculos customizados, em ordem, a uma lista de pedidos."""

    def __init__(
        self,
        calculations: Sequence[CustomCalculation],
        columns: Iterable[ColumnDef] = (),
        known_fields: Iterable[str] = (),
    ):
        self.calculations = tuple(calculations)
        self.columns = tuple(columns)
        self.columns_by_label = {column.label: column for column in self.columns}
        self.known_ids: Set[str] = set(DERIVED_FIELDS) | set(known_fields)
        self.known_ids.update(column.id for column in self.columns)
        self.known_ids.update(calc.id for calc in self.calculations)

    def evaluate(
        self,
        group: OrderGroup,
        calculation: CustomCalculation,
        report: CalculationReport,
        known_ids: Optional[Set[str]] = None,
    ) -> Optional[float]:
        """Valor de um cálculo para um pedido (None quando o canal não se aplica)."""
        if not calculation.applies_to(group.field_value("origem")):
            report.skipped += 1
            return None

        resolver = ColumnResolver(group, self.columns_by_label, known_ids or self.known_ids)
        try:
            result = evaluate_formula(calculation.formula, resolver)
            if calculation.interaction is not None:
                target = resolver(calculation.interaction.target_column)
                if calculation.interaction.operator == "+":
                    result = target + result
                else:
                    result = target - result
        except FormulaError as e:
            logger.warning(
                f"Cálculo {calculation.id} falhou para o pedido {group.code}: {type(e).__name__}: {e.message}"
            )
            report.add_failure(
                CalculationFailure(
                    calculation_id=calculation.id,
                    calculation_name=calculation.name,
                    order_code=group.code,
                    error_type=type(e).__name__,
                    message=e.message,
                )
            )
            return 0.0

        report.evaluated += 1
        return result

    def apply(
        self, group: OrderGroup, report: CalculationReport, known_ids: Optional[Set[str]] = None
    ) -> OrderGroup:
        """Armazena cada resultado em ``custom_data[calc.id]``, na ordem declarada."""
        for calculation in self.calculations:
            group.custom_data[calculation.id] = self.evaluate(group, calculation, report, known_ids)
        return group

    def apply_all(self, groups: Iterable[OrderGroup]) -> CalculationReport:
        """
        Aplica os cálculos a todos os pedidos.

        Um campo presente em qualquer pedido do snapshot é conhecido em
        todos: onde falta, vale 0 sem registrar falha.
        """
        report = CalculationReport()
        if not self.calculations:
            return report
        groups = list(groups)
        known_ids = self.known_ids | snapshot_fields(groups)
        for group in groups:
            self.apply(group, report, known_ids)
        if report.has_failures:
            logger.info(f"{len(report.failures)} falhas de cálculo customizado registradas")
        return report
