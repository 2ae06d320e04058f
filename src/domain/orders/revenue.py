"""
Resolução de receita e custos do pedido.

A receita do pedido segue uma cadeia fixa de três níveis, que não pode ser
reordenada: maior ``final`` positivo das linhas de cabeçalho, depois a soma
das linhas de item, depois o ``final`` mesclado no cabeçalho, e por fim 0.
"""

import logging
import math
from typing import Iterable

from .aggregates import OrderGroup
from .normalizer import CanonicalRow, to_number

logger = logging.getLogger(__name__)


def line_revenue(row: CanonicalRow) -> float:
    """Receita de uma linha de item: ``final`` positivo ou unitário × quantidade."""
    final = to_number(row.get("final"))
    if final > 0:
        return final
    quantidade = to_number(row.get("quantidade"))
    unitario = to_number(row.get("valorUnitario"))
    if quantidade > 0 and unitario > 0:
        return quantidade * unitario
    return 0.0


def header_final(rows: Iterable[CanonicalRow]) -> float:
    """Maior ``final`` positivo entre as linhas de cabeçalho (0 se nenhum)."""
    best = 0.0
    for row in rows:
        final = to_number(row.get("final"))
        if final > best:
            best = final
    return best


def resolve_revenue(header_value: float, items_sum: float, merged_final: float) -> float:
    """Cadeia de fallback da receita do pedido."""
    if header_value > 0:
        return header_value
    if items_sum > 0:
        return items_sum
    if merged_final:
        return merged_final
    return 0.0


def total_quantity(group: OrderGroup) -> float:
    """Soma das quantidades das linhas de item, com fallback na primeira linha."""
    quantidade = sum(to_number(row.get("quantidade")) for row in group.sub_rows)
    if quantidade == 0 and group.rows:
        quantidade = to_number(group.rows[0].get("quantidade"))
    return quantidade


def total_cost(rows: Iterable[CanonicalRow]) -> float:
    """Σ custoUnitario × quantidade, ignorando linhas sem custo ou quantidade válidos."""
    total = 0.0
    for row in rows:
        custo = to_number(row.get("custoUnitario"))
        quantidade = to_number(row.get("quantidade"))
        if not (math.isfinite(custo) and math.isfinite(quantidade)):
            continue
        if custo <= 0 or quantidade <= 0:
            continue
        total += custo * quantidade
    return total


def resolve_financials(group: OrderGroup) -> OrderGroup:
    """Preenche quantidade, receita, custo, frete e descontos do pedido."""
    group.quantidade_total = total_quantity(group)

    items_sum = sum(line_revenue(row) for row in group.sub_rows)
    group.final = resolve_revenue(
        header_final(group.non_detail_rows),
        items_sum,
        to_number(group.header.get("final")),
    )

    group.custo_total = total_cost(group.sub_rows or group.rows)
    group.custo_frete = sum(to_number(row.get("custoFrete")) for row in group.rows)
    group.valor_descontos = sum(to_number(row.get("valorDescontos")) for row in group.rows)

    logger.debug(f"Pedido {group.code}: final={group.final:.2f} custo={group.custo_total:.2f}")
    return group
