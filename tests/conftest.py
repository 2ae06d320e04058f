"""Test configuration and shared fixtures."""

from datetime import datetime

import pytest

from src.domain.orders.value_objects import (
    CreditFee,
    FeeSchedule,
    Modality,
    PackagingRule,
)
from tests.fakes import FixedClock


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at a known instant."""
    return FixedClock(datetime(2024, 3, 15, 12, 0, 0))


@pytest.fixture
def packaging_rules() -> list:
    """Packaging rules covering both delivery slots and the store bag."""
    return [
        PackagingRule(nome="Sacola Plástica", custo=0.10, modalidades=(Modality.DELIVERY,)),
        PackagingRule(nome="Sacola TNT", custo=0.20, modalidades=(Modality.DELIVERY,)),
        PackagingRule(nome="Sacola Loja", custo=0.30, modalidades=(Modality.LOJA,)),
    ]


@pytest.fixture
def fee_schedules() -> list:
    """Card operator fee tables."""
    return [
        FeeSchedule(
            nome="Stone",
            taxa_debito=1.5,
            taxas_credito=(CreditFee(numero=1, taxa=3.0), CreditFee(numero=3, taxa=4.5)),
        ),
    ]


@pytest.fixture
def sales_rows() -> list:
    """Canonical rows of one order: a header line and two item lines."""
    return [
        {
            "id": "r1",
            "codigo": "123",
            "data": datetime(2024, 3, 10),
            "nomeCliente": "Maria Souza",
            "origem": "Loja Física",
            "logistica": "Delivery Moto",
            "sourceFile": "vendas.xlsx",
            "uploadTimestamp": 1000,
            "linha": 0,
        },
        {
            "id": "r2",
            "codigo": "123",
            "item": "Camiseta",
            "quantidade": 2,
            "valorUnitario": 50.0,
            "custoUnitario": 20.0,
            "sourceFile": "vendas.xlsx",
            "uploadTimestamp": 1000,
            "linha": 1,
        },
        {
            "id": "r3",
            "codigo": "123",
            "item": "Boné",
            "quantidade": 1,
            "valorUnitario": 30.0,
            "custoUnitario": 10.0,
            "sourceFile": "vendas.xlsx",
            "uploadTimestamp": 1000,
            "linha": 2,
        },
    ]
