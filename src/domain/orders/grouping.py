"""
Motor de agrupamento e merge de pedidos.

Agrupa linhas canônicas pelo código normalizado e monta o cabeçalho de cada
pedido com a regra "primeiro valor não vazio vence". A ordem de ingestão é
explícita: as linhas de cada grupo são ordenadas por
``(uploadTimestamp, sourceFile, linha, id)`` antes do merge, de modo que o
resultado não depende da ordem da lista de entrada.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Tuple

from .aggregates import OrderGroup, Parcela
from .classifier import is_detail_row
from .codes import normalize_code
from .normalizer import CanonicalRow, coerce_date, is_empty_cell, to_number

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
    "data",
    "codigo",
    "tipo",
    "nomeCliente",
    "vendedor",
    "cidade",
    "origem",
    "origemCliente",
    "fidelizacao",
    "logistica",
    "final",
    "custoFrete",
    "mov_estoque",
    "valor",
    "entregador",
)

_UNIX_EPOCH = datetime(1970, 1, 1)


@dataclass
class GroupingResult:
    """Resultado do agrupamento."""

    groups: List[OrderGroup] = field(default_factory=list)
    unassignable: int = 0


def epoch_seconds(value: Any) -> float:
    """Segundos desde a época Unix; 0 quando o valor não é uma data."""
    parsed = coerce_date(value) if not isinstance(value, datetime) else value
    if parsed is None:
        return 0.0
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return (parsed - _UNIX_EPOCH).total_seconds()


def _upload_instant(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return epoch_seconds(value)


def _content_key(row: CanonicalRow) -> Tuple[Tuple[str, str, str], ...]:
    return tuple(sorted((str(k), type(v).__name__, str(v)) for k, v in row.items()))


def ingestion_key(row: CanonicalRow) -> Tuple[Any, ...]:
    """
    Chave de ordem de ingestão.

    Linhas sem metadados recebem valores neutros e vêm primeiro; o
    conteúdo da linha desempata para que permutações produzam o mesmo
    resultado.
    """
    return (
        _upload_instant(row.get("uploadTimestamp")),
        str(row.get("sourceFile") or ""),
        to_number(row.get("linha")),
        str(row.get("id") or ""),
        _content_key(row),
    )


def _code_sort_key(code: str) -> Tuple[int, Any]:
    return (0, int(code)) if code.isdigit() else (1, code)


def merge_into_header(group: OrderGroup, row: CanonicalRow) -> None:
    """Preenche campos vazios do cabeçalho e acumula parcelas."""
    for key in HEADER_FIELDS:
        if is_empty_cell(group.header.get(key)) and not is_empty_cell(row.get(key)):
            group.header[key] = row[key]

    if not is_empty_cell(row.get("valor_da_parcela")):
        valor = to_number(row["valor_da_parcela"])
        group.total_valor_parcelas += valor
        group.parcelas.append(
            Parcela(
                valor=valor,
                modo=_first_present(row, "modo_de_pagamento", "modoPagamento2"),
                bandeira=_first_present(row, "bandeira1", "bandeira2"),
                instituicao=row.get("instituicao_financeira"),
            )
        )


def _first_present(row: CanonicalRow, *keys: str) -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def _dedupe_costs(rows: Iterable[CanonicalRow]) -> List[Dict[str, Any]]:
    seen = set()
    costs: List[Dict[str, Any]] = []
    for row in rows:
        for cost in row.get("costs") or ():
            key = (str(cost.get("id")), str(cost.get("valor")))
            if key in seen:
                continue
            seen.add(key)
            costs.append(cost)
    return costs


def build_group(code: str, rows: List[CanonicalRow]) -> OrderGroup:
    """Monta um OrderGroup a partir das linhas de um mesmo código."""
    ordered = sorted(rows, key=ingestion_key)
    group = OrderGroup(code=code, rows=ordered)

    for row in ordered:
        merge_into_header(group, row)
    group.header["codigo"] = code

    details = [row for row in ordered if is_detail_row(row)]
    # sort estável: empates mantêm a ordem de ingestão
    group.sub_rows = sorted(details, key=lambda row: epoch_seconds(row.get("data")))
    group.costs = _dedupe_costs(ordered)
    return group


def group_rows(rows: Iterable[CanonicalRow]) -> GroupingResult:
    """
    Agrupa linhas canônicas por código de pedido.

    Linhas sem código são excluídas de todos os grupos e apenas contadas.
    Os grupos saem ordenados pelo código.
    """
    buckets: Dict[str, List[CanonicalRow]] = {}
    unassignable = 0

    for row in rows:
        code = normalize_code(row.get("codigo"))
        if not code:
            unassignable += 1
            continue
        buckets.setdefault(code, []).append(row)

    if unassignable:
        logger.info(f"{unassignable} linhas sem código de pedido ignoradas no agrupamento")

    groups = [build_group(code, buckets[code]) for code in sorted(buckets, key=_code_sort_key)]
    logger.debug(f"Agrupamento gerou {len(groups)} pedidos")
    return GroupingResult(groups=groups, unassignable=unassignable)
