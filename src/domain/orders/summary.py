"""Indicadores consolidados sobre os pedidos materializados."""

from dataclasses import asdict, dataclass
from typing import Dict, Sequence

from .aggregates import OrderGroup


@dataclass(frozen=True)
class OrderSummary:
    """KPIs do período."""

    faturamento: float = 0.0
    descontos: float = 0.0
    custo_total: float = 0.0
    frete: float = 0.0
    valor_final_total: float = 0.0
    total_items: float = 0.0
    ticket_medio: float = 0.0
    qtd_media: float = 0.0
    margem_bruta: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        return {
            "faturamento": data["faturamento"],
            "descontos": data["descontos"],
            "custoTotal": data["custo_total"],
            "frete": data["frete"],
            "valorFinalTotal": data["valor_final_total"],
            "totalItems": data["total_items"],
            "ticketMedio": data["ticket_medio"],
            "qtdMedia": data["qtd_media"],
            "margemBruta": data["margem_bruta"],
        }


def summarize(orders: Sequence[OrderGroup]) -> OrderSummary:
    """
    Consolida os pedidos.

    faturamento = Σ(final − valorDescontos + custoFrete);
    margemBruta = faturamento − custoTotal.
    """
    faturamento = sum(o.final - o.valor_descontos + o.custo_frete for o in orders)
    custo_total = sum(o.custo_total for o in orders)
    total_items = sum(o.quantidade_total for o in orders)
    count = len(orders)

    return OrderSummary(
        faturamento=faturamento,
        descontos=sum(o.valor_descontos for o in orders),
        custo_total=custo_total,
        frete=sum(o.custo_frete for o in orders),
        valor_final_total=sum(o.final for o in orders),
        total_items=total_items,
        ticket_medio=faturamento / count if count else 0.0,
        qtd_media=total_items / count if count else 0.0,
        margem_bruta=faturamento - custo_total,
    )
