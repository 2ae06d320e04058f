"""Unit tests for the restricted formula evaluator."""

import pytest

from src.domain.errors import FormulaSyntaxError, NonFiniteResultError, UnknownColumnError
from src.domain.orders.formulas import evaluate_formula, validate_formula
from src.domain.orders.value_objects import FormulaItem, FormulaItemType


def col(name):
    return FormulaItem(FormulaItemType.COLUMN, name)


def num(value):
    return FormulaItem(FormulaItemType.NUMBER, str(value))


def op(symbol):
    return FormulaItem(FormulaItemType.OPERATOR, symbol)


VALUES = {"final": 200.0, "custoTotal": 50.0, "zero": 0.0}


def resolver(reference, position):
    if reference not in VALUES:
        raise UnknownColumnError(reference, position)
    return VALUES[reference]


class TestEvaluateFormula:

    def test_precedence(self):
        items = [col("final"), op("-"), col("custoTotal"), op("*"), num(2)]
        assert evaluate_formula(items, resolver) == 100.0

    def test_parentheses(self):
        items = [op("("), col("final"), op("-"), col("custoTotal"), op(")"), op("/"), num(3)]
        assert evaluate_formula(items, resolver) == 50.0

    def test_unary_minus(self):
        items = [op("-"), col("custoTotal"), op("+"), num(10)]
        assert evaluate_formula(items, resolver) == -40.0

    def test_decimal_comma_literal(self):
        items = [col("final"), op("*"), num("0,1")]
        assert evaluate_formula(items, resolver) == pytest.approx(20.0)

    def test_operator_aliases(self):
        items = [col("final"), op("×"), num(2), op("÷"), num(4), op("−"), num(1)]
        assert evaluate_formula(items, resolver) == 99.0

    def test_division_by_zero(self):
        with pytest.raises(NonFiniteResultError):
            evaluate_formula([col("final"), op("/"), col("zero")], resolver)

    def test_unknown_column_propagates(self):
        with pytest.raises(UnknownColumnError) as exc_info:
            evaluate_formula([col("final"), op("+"), col("margem")], resolver)

        assert exc_info.value.reference == "margem"
        assert exc_info.value.position == 2

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [col("final"), op("+")],
            [op("("), col("final")],
            [col("final"), col("custoTotal")],
            [op("*"), col("final")],
            [num("abc")],
        ],
    )
    def test_malformed_formulas(self, items):
        with pytest.raises(FormulaSyntaxError):
            evaluate_formula(items, resolver)


class TestValidateFormula:

    def test_valid_formula(self):
        assert validate_formula([col("final"), op("-"), col("custoTotal")]) == []

    def test_empty(self):
        assert validate_formula([]) == ["Formula is empty"]

    def test_operators_only(self):
        problems = validate_formula([op("+")])
        assert "Formula must reference a column or a number" in problems

    def test_unknown_operator(self):
        assert "Unknown operator: ^" in validate_formula([num(2), op("^"), num(3)])

    def test_unbalanced_parentheses(self):
        assert "Unbalanced parentheses" in validate_formula([op("("), num(1), op("+"), num(2)])
        assert "Unbalanced parentheses" in validate_formula([num(1), op(")"), op("("), num(2)])

    def test_trailing_operator(self):
        assert "Formula cannot end with an operator" in validate_formula([num(1), op("+")])

    def test_adjacent_values_rejected(self):
        problems = validate_formula([col("final"), col("custoTotal")])
        assert problems == ["Unexpected token at position 1"]

    def test_literal_division_by_zero_is_still_valid_syntax(self):
        assert validate_formula([num(1), op("/"), num(0)]) == []
