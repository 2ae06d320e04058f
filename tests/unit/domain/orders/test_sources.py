"""Unit tests for reconciling sales with logistics and cost records."""

from src.domain.orders.sources import attach_sources


class TestAttachSources:

    def test_logistics_overlay_applies_non_empty_values(self):
        sales = [{"id": "s1", "codigo": "10", "logistica": "Retirada", "entregador": "Zé", "valor": 5.0}]
        logistics = [{"codigo": "010", "logistica": "Motoboy", "entregador": "", "valor": 12.0}]

        rows = attach_sources(sales, logistics)

        assert rows[0]["logistica"] == "Motoboy"
        assert rows[0]["entregador"] == "Zé"
        assert rows[0]["valor"] == 12.0

    def test_last_logistics_record_wins(self):
        logistics = [
            {"codigo": "10", "logistica": "Motoboy"},
            {"codigo": "10", "logistica": "Correios"},
        ]

        rows = attach_sources([{"id": "s1", "codigo": "10"}], logistics)

        assert rows[0]["logistica"] == "Correios"

    def test_costs_attached_by_code(self):
        costs = [
            {"id": "c1", "codigo": "10", "valor": 50.0},
            {"id": "c2", "codigo": "11", "valor": 20.0},
            {"id": "c3", "codigo": "10", "valor": 30.0},
        ]

        rows = attach_sources([{"id": "s1", "codigo": "10"}, {"id": "s2", "codigo": "12"}], costs=costs)

        assert [c["id"] for c in rows[0]["costs"]] == ["c1", "c3"]
        assert rows[1]["costs"] == []

    def test_duplicate_sales_ids_keep_last_version(self):
        sales = [
            {"id": "s1", "codigo": "10", "cidade": "Recife"},
            {"id": "s2", "codigo": "11"},
            {"id": "s1", "codigo": "10", "cidade": "Olinda"},
        ]

        rows = attach_sources(sales)

        assert [r["id"] for r in rows] == ["s1", "s2"]
        assert rows[0]["cidade"] == "Olinda"

    def test_rows_without_id_are_all_kept(self):
        rows = attach_sources([{"codigo": "10"}, {"codigo": "10"}])
        assert len(rows) == 2

    def test_input_rows_are_not_mutated(self):
        sale = {"id": "s1", "codigo": "10"}
        attach_sources([sale], [{"codigo": "10", "logistica": "Motoboy"}])
        assert sale == {"id": "s1", "codigo": "10"}
