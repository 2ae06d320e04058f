"""Unit tests for packaging cost allocation."""

import pytest

from src.domain.orders.aggregates import OrderGroup
from src.domain.orders.packaging import (
    PackagingAllocator,
    modality_for,
    resolve_quantity,
)
from src.domain.orders.value_objects import Modality, PackagingRule, QuantityStrategy


def _group(logistica, quantidade_total):
    group = OrderGroup(code="1", header={"logistica": logistica})
    group.quantidade_total = quantidade_total
    return group


class TestModality:

    @pytest.mark.parametrize("logistica", ["Retirada na Loja", "LOJA", "loja física"])
    def test_store_pickup(self, logistica):
        assert modality_for(logistica) is Modality.LOJA

    @pytest.mark.parametrize("logistica", ["Motoboy", "", None])
    def test_everything_else_is_delivery(self, logistica):
        assert modality_for(logistica) is Modality.DELIVERY


class TestResolveQuantity:

    def test_strategies(self):
        assert resolve_quantity(QuantityStrategy.POR_PEDIDO, 7) == 1
        assert resolve_quantity(QuantityStrategy.POR_UNIDADE, 2.5) == 3
        assert resolve_quantity(QuantityStrategy.POR_N_UNIDADES, 5, 2) == 3
        assert resolve_quantity(QuantityStrategy.POR_N_UNIDADES, 4, 2) == 2


class TestPackagingAllocator:

    def test_delivery_uses_plastic_bag_per_order_and_tnt_per_unit(self, packaging_rules):
        group = PackagingAllocator(packaging_rules).allocate(_group("Motoboy", 5))

        assert group.custo_embalagem == pytest.approx(1.10)
        assert [(e.nome, e.quantidade) for e in group.embalagens] == [
            ("Sacola Plástica", 1),
            ("Sacola TNT", 5),
        ]

    def test_store_uses_one_bag_per_two_units(self, packaging_rules):
        group = PackagingAllocator(packaging_rules).allocate(_group("Retirada Loja", 5))

        assert group.custo_embalagem == pytest.approx(0.90)
        assert [(e.nome, e.quantidade) for e in group.embalagens] == [("Sacola Loja", 3)]

    def test_delivery_three_units(self):
        rules = [
            PackagingRule(nome="Saco Plástico", custo=0.5, modalidades=(Modality.DELIVERY,)),
            PackagingRule(nome="TNT", custo=0.2, modalidades=(Modality.DELIVERY,)),
        ]

        group = PackagingAllocator(rules).allocate(_group("Entrega", 3))

        assert group.custo_embalagem == pytest.approx(1.10)

    def test_no_quantity_no_packaging(self, packaging_rules):
        group = PackagingAllocator(packaging_rules).allocate(_group("Motoboy", 0))

        assert group.custo_embalagem == 0.0
        assert group.embalagens == []

    def test_no_rules_no_packaging(self):
        group = PackagingAllocator([]).allocate(_group("Motoboy", 3))
        assert group.custo_embalagem == 0.0

    def test_explicit_strategy_overrides_slot_default(self):
        rules = [
            PackagingRule(
                nome="Sacola Plástica",
                custo=0.5,
                modalidades=(Modality.DELIVERY,),
                estrategia=QuantityStrategy.POR_UNIDADE,
            )
        ]

        group = PackagingAllocator(rules).allocate(_group("Motoboy", 4))

        assert group.custo_embalagem == pytest.approx(2.0)

    def test_store_falls_back_to_first_store_tagged_rule(self):
        rules = [
            PackagingRule(nome="Sacola TNT", custo=0.2, modalidades=(Modality.DELIVERY,)),
            PackagingRule(nome="Caixa Kraft", custo=1.0, modalidades=(Modality.TODOS,)),
        ]

        group = PackagingAllocator(rules).allocate(_group("Loja", 3))

        assert [(e.nome, e.quantidade) for e in group.embalagens] == [("Caixa Kraft", 2)]
        assert group.custo_embalagem == pytest.approx(2.0)

    def test_rules_for_other_modality_are_not_used(self):
        rules = [PackagingRule(nome="Sacola Plástica", custo=0.1, modalidades=(Modality.LOJA,))]

        group = PackagingAllocator(rules).allocate(_group("Motoboy", 2))

        assert group.embalagens == []

    def test_untagged_rules_serve_every_modality(self):
        rules = [PackagingRule(nome="Saco TNT", custo=0.25)]

        group = PackagingAllocator(rules).allocate(_group("Motoboy", 2))

        assert group.custo_embalagem == pytest.approx(0.5)
