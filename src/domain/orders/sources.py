"""
Reconciliação das coleções de origem.

Cada linha de venda recebe os dados do registro de logística com o mesmo
código e a lista de registros de custo daquele código.
"""

import logging
from typing import Any, Dict, Iterable, List

from .codes import normalize_code
from .normalizer import CanonicalRow, is_empty_cell

logger = logging.getLogger(__name__)

LOGISTICS_FIELDS = ("logistica", "entregador", "valor")


def attach_sources(
    sales: Iterable[CanonicalRow],
    logistics: Iterable[CanonicalRow] = (),
    costs: Iterable[CanonicalRow] = (),
) -> List[CanonicalRow]:
    """
    Anexa logística e custos às linhas de venda.

    Para códigos repetidos na logística, o último registro vence. Linhas de
    venda com o mesmo ``id`` são deduplicadas (a última vence, mantendo a
    posição da primeira ocorrência); linhas sem ``id`` são todas mantidas.
    """
    logistics_by_code: Dict[str, CanonicalRow] = {}
    for record in logistics:
        code = normalize_code(record.get("codigo"))
        if code:
            logistics_by_code[code] = record

    costs_by_code: Dict[str, List[Dict[str, Any]]] = {}
    for record in costs:
        code = normalize_code(record.get("codigo"))
        if code:
            costs_by_code.setdefault(code, []).append(dict(record))

    merged: Dict[Any, CanonicalRow] = {}
    anonymous = 0
    for sale in sales:
        row = dict(sale)
        code = normalize_code(row.get("codigo"))
        record = logistics_by_code.get(code)
        if record is not None:
            for key in LOGISTICS_FIELDS:
                if not is_empty_cell(record.get(key)):
                    row[key] = record[key]
        row["costs"] = list(costs_by_code.get(code, ()))

        row_id = row.get("id")
        if row_id is None:
            merged[("anonymous", anonymous)] = row
            anonymous += 1
        else:
            merged[row_id] = row

    logger.debug(
        f"Reconciliação: {len(merged)} vendas, {len(logistics_by_code)} registros de logística, "
        f"{len(costs_by_code)} códigos com custos"
    )
    return list(merged.values())
