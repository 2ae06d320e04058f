"""
Engine de pedidos do painel de vendas.

Normaliza linhas de planilhas heterogêneas, agrupa por código de pedido e
calcula métricas financeiras (receita, custo, embalagem, taxas de cartão e
cálculos customizados).
"""

from .aggregates import AppliedPackaging, OrderGroup, Parcela
from .codes import normalize_code, pick_code
from .columns import merge_columns, columns_for_documents, sync_preferences
from .grouping import GroupingResult, group_rows
from .normalizer import FieldNormalizer, coerce_date, coerce_numeric
from .pipeline import OrderMetricsPipeline, PipelineResult
from .sources import attach_sources
from .summary import OrderSummary, summarize
from .value_objects import (
    ColumnDef,
    CreditFee,
    CustomCalculation,
    FeeSchedule,
    FormulaItem,
    FormulaItemType,
    Interaction,
    Modality,
    PackagingRule,
    QuantityStrategy,
)

__all__ = [
    # Aggregates
    "OrderGroup",
    "Parcela",
    "AppliedPackaging",
    # Value Objects
    "ColumnDef",
    "CreditFee",
    "CustomCalculation",
    "FeeSchedule",
    "FormulaItem",
    "FormulaItemType",
    "Interaction",
    "Modality",
    "PackagingRule",
    "QuantityStrategy",
    # Stages
    "FieldNormalizer",
    "coerce_date",
    "coerce_numeric",
    "normalize_code",
    "pick_code",
    "GroupingResult",
    "group_rows",
    "attach_sources",
    "merge_columns",
    "columns_for_documents",
    "sync_preferences",
    "OrderSummary",
    "summarize",
    "OrderMetricsPipeline",
    "PipelineResult",
]
