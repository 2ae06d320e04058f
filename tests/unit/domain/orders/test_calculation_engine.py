"""Unit tests for applying custom calculations to orders."""

import pytest

from src.domain.orders.aggregates import OrderGroup
from src.domain.orders.formulas import CalculationReport, ColumnResolver, CustomCalculationEngine
from src.domain.errors import UnknownColumnError
from src.domain.orders.value_objects import (
    ColumnDef,
    CustomCalculation,
    FormulaItem,
    FormulaItemType,
    Interaction,
)


def col(name):
    return FormulaItem(FormulaItemType.COLUMN, name)


def num(value):
    return FormulaItem(FormulaItemType.NUMBER, str(value))


def op(symbol):
    return FormulaItem(FormulaItemType.OPERATOR, symbol)


@pytest.fixture
def order():
    group = OrderGroup(
        code="42",
        rows=[{"codigo": "42", "origem": "iFood", "cupom": ""}],
        header={"codigo": "42", "origem": "iFood"},
    )
    group.final = 200.0
    group.custo_total = 50.0
    group.custo_frete = 30.0
    return group


class TestCustomCalculationEngine:

    def test_result_stored_under_calculation_id(self, order):
        calc = CustomCalculation(id="custom_margem", name="Margem", formula=[col("final"), op("-"), col("custoTotal")])

        report = CustomCalculationEngine([calc]).apply_all([order])

        assert order.custom_data == {"custom_margem": 150.0}
        assert report.evaluated == 1
        assert report.failures == []

    def test_interaction_combines_with_target(self, order):
        calc = CustomCalculation(
            id="custom_frete",
            name="Frete ajustado",
            formula=[col("final"), op("-"), col("custoTotal")],
            interaction=Interaction(target_column="custoFrete", operator="+"),
        )

        CustomCalculationEngine([calc]).apply_all([order])

        assert order.custom_data["custom_frete"] == 180.0

    def test_interaction_subtracts_result_from_target(self, order):
        calc = CustomCalculation(
            id="custom_x",
            name="X",
            formula=[num(10)],
            interaction=Interaction(target_column="custoFrete", operator="-"),
        )

        CustomCalculationEngine([calc]).apply_all([order])

        assert order.custom_data["custom_x"] == 20.0

    def test_unknown_column_yields_zero_and_failure(self, order):
        calc = CustomCalculation(id="custom_bad", name="Ruim", formula=[col("final"), op("+"), col("inexistente")])

        report = CustomCalculationEngine([calc]).apply_all([order])

        assert order.custom_data["custom_bad"] == 0.0
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert failure.calculation_id == "custom_bad"
        assert failure.order_code == "42"
        assert failure.error_type == "UnknownColumnError"
        assert "inexistente" in failure.message

    def test_division_by_zero_yields_zero_and_failure(self, order):
        calc = CustomCalculation(id="custom_div", name="Div", formula=[col("final"), op("/"), col("custoEmbalagem")])

        report = CustomCalculationEngine([calc]).apply_all([order])

        assert order.custom_data["custom_div"] == 0.0
        assert report.failures[0].error_type == "NonFiniteResultError"

    def test_failure_does_not_stop_other_calculations(self, order):
        calcs = [
            CustomCalculation(id="custom_bad", name="Ruim", formula=[col("nada")]),
            CustomCalculation(id="custom_ok", name="Ok", formula=[col("final"), op("*"), num(2)]),
        ]

        report = CustomCalculationEngine(calcs).apply_all([order])

        assert order.custom_data == {"custom_bad": 0.0, "custom_ok": 400.0}
        assert report.evaluated == 1
        assert len(report.failures) == 1

    def test_later_calculation_reads_earlier_result(self, order):
        calcs = [
            CustomCalculation(id="custom_a", name="A", formula=[col("final"), op("/"), num(2)]),
            CustomCalculation(id="custom_b", name="B", formula=[col("custom_a"), op("+"), num(1)]),
        ]

        CustomCalculationEngine(calcs).apply_all([order])

        assert order.custom_data["custom_b"] == 101.0

    def test_marketplace_filter(self, order):
        calcs = [
            CustomCalculation(id="custom_ifood", name="iFood", formula=[num(1)], target_marketplace="IFOOD"),
            CustomCalculation(id="custom_loja", name="Loja", formula=[num(1)], target_marketplace="Loja"),
            CustomCalculation(id="custom_todos", name="Todos", formula=[num(1)], target_marketplace="all"),
        ]

        report = CustomCalculationEngine(calcs).apply_all([order])

        assert order.custom_data == {"custom_ifood": 1.0, "custom_loja": None, "custom_todos": 1.0}
        assert report.skipped == 1

    def test_reference_by_column_label(self, order):
        calc = CustomCalculation(id="custom_l", name="L", formula=[col("Valor Final"), op("-"), num(1)])
        columns = [ColumnDef(id="final", label="Valor Final")]

        CustomCalculationEngine([calc], columns).apply_all([order])

        assert order.custom_data["custom_l"] == 199.0

    def test_field_of_another_order_is_known(self, order):
        other = OrderGroup(code="43", rows=[{"codigo": "43", "gorjeta": 5.0}], header={"codigo": "43"})
        calc = CustomCalculation(id="custom_g", name="Gorjeta", formula=[col("gorjeta"), op("+"), num(1)])

        report = CustomCalculationEngine([calc]).apply_all([order, other])

        assert order.custom_data["custom_g"] == 1.0
        assert other.custom_data["custom_g"] == 6.0
        assert report.failures == []
        assert report.evaluated == 2

    def test_no_calculations_is_a_no_op(self, order):
        report = CustomCalculationEngine([]).apply_all([order])
        assert order.custom_data == {}
        assert report.evaluated == 0


class TestColumnResolver:

    def test_known_but_empty_field_is_zero(self, order):
        resolver = ColumnResolver(order, {}, set())
        assert resolver("cupom") == 0.0

    def test_known_field_without_value_is_zero(self, order):
        resolver = ColumnResolver(order, {}, {"vendedor"})
        assert resolver("vendedor") == 0.0

    def test_unknown_reference_raises(self, order):
        resolver = ColumnResolver(order, {}, set())
        with pytest.raises(UnknownColumnError):
            resolver("inexistente", 3)

    def test_non_numeric_value_is_zero(self, order):
        resolver = ColumnResolver(order, {}, set())
        assert resolver("origem") == 0.0

    def test_report_defaults(self):
        report = CalculationReport()
        assert not report.has_failures
