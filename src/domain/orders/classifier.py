"""
Classificador de linhas canônicas.

Uma linha é de detalhe quando carrega qualquer campo de item ou de planilha
de apoio (recebimentos); caso contrário é uma linha de cabeçalho. A
classificação escolhe apenas o balde, toda linha participa do back-fill
do cabeçalho.
"""

from enum import Enum
from typing import Mapping, Any

from .normalizer import is_empty_cell

ITEM_KEYS = (
    "item",
    "descricao",
    "quantidade",
    "custoUnitario",
    "valorUnitario",
    "valorCredito",
)

SUPPORT_DETAIL_KEYS = (
    "valor_da_parcela",
    "modo_de_pagamento",
    "instituicao_financeira",
    "bandeira1",
    "bandeira2",
    "parcelas1",
    "parcelas2",
    "valorParcela1",
    "valorParcela2",
    "taxaCartao1",
    "taxaCartao2",
)


class RowKind(Enum):
    """Balde de uma linha dentro do pedido."""

    HEADER = "header"
    DETAIL = "detail"


def is_detail_row(row: Mapping[str, Any]) -> bool:
    """Verifica se a linha carrega algum campo de item ou de apoio."""
    return any(not is_empty_cell(row.get(key)) for key in ITEM_KEYS) or any(
        not is_empty_cell(row.get(key)) for key in SUPPORT_DETAIL_KEYS
    )


def classify_row(row: Mapping[str, Any]) -> RowKind:
    """Classifica a linha como cabeçalho ou detalhe."""
    return RowKind.DETAIL if is_detail_row(row) else RowKind.HEADER
