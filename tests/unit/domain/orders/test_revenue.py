"""Unit tests for order revenue, quantity and cost resolution."""

import pytest

from src.domain.orders.grouping import build_group
from src.domain.orders.revenue import (
    line_revenue,
    resolve_financials,
    resolve_revenue,
    total_cost,
)


class TestRevenueFallbackChain:
    """Header final, then item sum, then merged final, then zero."""

    def test_header_final_wins(self):
        rows = [
            {"id": "h", "codigo": "1", "final": 100.0, "linha": 0},
            {"id": "i", "codigo": "1", "item": "X", "quantidade": 2, "valorUnitario": 40.0, "linha": 1},
        ]

        group = resolve_financials(build_group("1", rows))

        assert group.final == 100.0

    def test_item_sum_when_no_header_final(self):
        rows = [
            {"id": "h", "codigo": "1", "nomeCliente": "Ana", "linha": 0},
            {"id": "i", "codigo": "1", "item": "X", "quantidade": 2, "valorUnitario": 40.0, "linha": 1},
        ]

        group = resolve_financials(build_group("1", rows))

        assert group.final == 80.0

    def test_largest_positive_header_final(self):
        rows = [
            {"id": "a", "codigo": "1", "final": "30,00", "linha": 0},
            {"id": "b", "codigo": "1", "final": 45.0, "linha": 1},
        ]

        group = resolve_financials(build_group("1", rows))

        assert group.final == 45.0

    def test_merged_final_used_last(self):
        assert resolve_revenue(0.0, 0.0, 50.0) == 50.0

    def test_zero_when_nothing_known(self):
        assert resolve_revenue(0.0, 0.0, 0.0) == 0.0

    def test_order_of_tiers(self):
        assert resolve_revenue(100.0, 80.0, 50.0) == 100.0
        assert resolve_revenue(0.0, 80.0, 50.0) == 80.0

    def test_line_revenue_prefers_positive_final(self):
        assert line_revenue({"final": 12.0, "quantidade": 3, "valorUnitario": 10.0}) == 12.0
        assert line_revenue({"final": 0, "quantidade": 3, "valorUnitario": 10.0}) == 30.0
        assert line_revenue({"quantidade": 3}) == 0.0


class TestQuantityAndCosts:

    def test_totals(self, sales_rows):
        group = resolve_financials(build_group("123", sales_rows))

        assert group.quantidade_total == 3
        assert group.final == 130.0
        assert group.custo_total == 50.0

    def test_header_only_order_has_no_quantity_or_cost(self):
        rows = [{"id": "h", "codigo": "1", "nomeCliente": "Ana", "final": 60.0, "linha": 0}]

        group = resolve_financials(build_group("1", rows))

        assert group.quantidade_total == 0.0
        assert group.custo_total == 0.0
        assert group.final == 60.0

    def test_total_cost_skips_invalid_lines(self):
        rows = [
            {"custoUnitario": 10.0, "quantidade": 2},
            {"custoUnitario": -5.0, "quantidade": 1},
            {"custoUnitario": "abc", "quantidade": 4},
            {"custoUnitario": 3.0, "quantidade": 0},
        ]
        assert total_cost(rows) == 20.0

    def test_freight_and_discounts_summed_over_rows(self):
        rows = [
            {"id": "a", "codigo": "1", "custoFrete": 8.0, "valorDescontos": "2,50", "linha": 0},
            {"id": "b", "codigo": "1", "item": "X", "custoFrete": 2.0, "linha": 1},
        ]

        group = resolve_financials(build_group("1", rows))

        assert group.custo_frete == 10.0
        assert group.valor_descontos == pytest.approx(2.5)
