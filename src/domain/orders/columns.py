"""
Metadados de colunas da tabela de vendas.

Mantém a lista de colunas sincronizada com os cálculos customizados
existentes: colunas de cálculos removidos são podadas.
"""

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .value_objects import ColumnDef, CustomCalculation

COLUMN_LABELS: Dict[str, str] = {
    "data": "Data",
    "codigo": "Código",
    "tipo": "Tipo",
    "nomeCliente": "Cliente",
    "vendedor": "Vendedor",
    "cidade": "Cidade",
    "origem": "Origem",
    "fidelizacao": "Fidelização",
    "logistica": "Logística",
    "item": "Item",
    "descricao": "Descrição",
    "quantidade": "Qtd.",
    "quantidadeTotal": "Qtd. Total",
    "custoUnitario": "Custo Unitário",
    "valorUnitario": "Valor Unitário",
    "final": "Valor Final",
    "custoFrete": "Valor Entrega",
    "valorCredito": "Valor Crédito",
    "valorDescontos": "Valor Descontos",
    "entregador": "Entregador",
    "valor": "Valor Logística",
    "origemCliente": "Origem Cliente",
    "custoEmbalagem": "Custo Embalagem",
    "custoTotal": "Custo Total",
    "taxaTotalCartao": "Taxa Cartão",
}

REQUIRED_COLUMNS = ("quantidadeTotal", "custoUnitario", "valorDescontos")

# Campos internos que não viram colunas de fórmula
SYSTEM_COLUMNS = frozenset({
    "id",
    "sourceFile",
    "uploadTimestamp",
    "linha",
    "subRows",
    "parcelas",
    "embalagens",
    "total_valor_parcelas",
    "mov_estoque",
    "valor_da_parcela",
    "tipo_de_pagamento",
    "quantidade_movimentada",
    "costs",
    "customData",
})

CALCULATED_COLUMNS = ("custoEmbalagem", "custoTotal", "taxaTotalCartao")

_CUSTOM_ID = re.compile(r"^custom[_-]", re.IGNORECASE)


def is_custom_id(column_id: str) -> bool:
    return bool(_CUSTOM_ID.match(column_id))


def column_label(key: str, calculations: Sequence[CustomCalculation] = ()) -> str:
    """Rótulo de exibição: nome do cálculo para ids custom, senão o rótulo estático."""
    if is_custom_id(key):
        for calc in calculations:
            if calc.id == key and calc.name:
                return calc.name
    return COLUMN_LABELS.get(key, key)


def merge_columns(existing: Iterable[ColumnDef], calculations: Sequence[CustomCalculation]) -> List[ColumnDef]:
    """
    Junta metadados persistidos com os cálculos atuais.

    Remove colunas custom sem cálculo correspondente, faz upsert da coluna
    de cada cálculo e garante as colunas obrigatórias.
    """
    calc_ids = {calc.id for calc in calculations}
    merged: Dict[str, ColumnDef] = {}
    for column in existing:
        if is_custom_id(column.id) and column.id not in calc_ids:
            continue
        merged[column.id] = column

    for calc in calculations:
        merged[calc.id] = ColumnDef(id=calc.id, label=calc.name or calc.id, is_sortable=True)

    for column_id in REQUIRED_COLUMNS:
        if column_id not in merged:
            merged[column_id] = ColumnDef(id=column_id, label=column_label(column_id), is_sortable=True)

    return list(merged.values())


def columns_for_documents(
    existing: Iterable[ColumnDef],
    keys: Iterable[str],
    calculations: Sequence[CustomCalculation] = (),
) -> List[ColumnDef]:
    """Acrescenta colunas para chaves ainda não vistas (sempre ``quantidadeTotal``, nunca ``valor_final``)."""
    current: Dict[str, ColumnDef] = {column.id: column for column in existing}
    all_keys = list(keys) + ["quantidadeTotal"]
    for key in all_keys:
        if key == "valor_final" or key in current:
            continue
        current[key] = ColumnDef(id=key, label=column_label(key, calculations), is_sortable=True)
    current.pop("valor_final", None)
    return list(current.values())


def formula_columns(
    columns: Iterable[ColumnDef],
    calculations: Sequence[CustomCalculation],
    sample_keys: Iterable[str] = (),
) -> List[ColumnDef]:
    """Colunas disponíveis como referência em fórmulas."""
    available: Dict[str, ColumnDef] = {}
    for column in columns:
        available.setdefault(column.id, column)
    for calc in calculations:
        available.setdefault(calc.id, ColumnDef(id=calc.id, label=calc.name or calc.id))
    for key in list(CALCULATED_COLUMNS) + list(sample_keys):
        available.setdefault(key, ColumnDef(id=key, label=column_label(key, calculations)))
    return [column for column in available.values() if column.id not in SYSTEM_COLUMNS]


def sync_preferences(
    order: Optional[Sequence[str]],
    visibility: Optional[Mapping[str, bool]],
    columns: Iterable[ColumnDef],
) -> Tuple[List[str], Dict[str, bool]]:
    """
    Sincroniza ordem e visibilidade das colunas do usuário.

    Ids novos entram no fim da ordem e visíveis por padrão; ids que não
    existem mais são removidos.
    """
    ids = [column.id for column in columns]
    present = set(ids)

    next_order = [column_id for column_id in (order or ()) if column_id in present]
    next_order.extend(column_id for column_id in ids if column_id not in next_order)

    next_visibility = {key: value for key, value in (visibility or {}).items() if key in present}
    for column_id in ids:
        next_visibility.setdefault(column_id, True)

    return next_order, next_visibility
