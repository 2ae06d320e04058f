"""
Alocação de custos de embalagem por pedido.

Delivery usa uma sacola plástica por pedido e uma sacola TNT por unidade;
Loja usa uma sacola de loja a cada N unidades (arredondando para cima).
A estratégia explícita de uma regra substitui o padrão do slot.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .aggregates import AppliedPackaging, OrderGroup
from .normalizer import normalize_text
from .value_objects import Modality, PackagingRule, QuantityStrategy

logger = logging.getLogger(__name__)

_LOJA = re.compile(r"loja")


@dataclass(frozen=True)
class PackagingSlot:
    """Posição de embalagem: padrão de nome e estratégia padrão."""

    name: str
    pattern: re.Pattern
    default_strategy: QuantityStrategy


PLASTIC_BAG = PackagingSlot(
    "sacola_plastica", re.compile(r"(sacola|saco).*(plastico|plastica)"), QuantityStrategy.POR_PEDIDO
)
TNT_BAG = PackagingSlot("sacola_tnt", re.compile(r"((sacola|saco).*)?tnt\b"), QuantityStrategy.POR_UNIDADE)
STORE_BAG = PackagingSlot("sacola_loja", re.compile(r"(sacola|saco).*loja"), QuantityStrategy.POR_N_UNIDADES)

SLOTS_BY_MODALITY = {
    Modality.DELIVERY: (PLASTIC_BAG, TNT_BAG),
    Modality.LOJA: (STORE_BAG,),
}


def modality_for(logistica: object) -> Modality:
    """Loja quando o canal logístico menciona loja; Delivery caso contrário."""
    return Modality.LOJA if _LOJA.search(normalize_text(logistica)) else Modality.DELIVERY


def resolve_quantity(strategy: QuantityStrategy, quantidade_total: float, units_per_package: int = 2) -> int:
    """Quantidade de embalagens consumidas pelo pedido."""
    if strategy is QuantityStrategy.POR_PEDIDO:
        return 1
    if strategy is QuantityStrategy.POR_UNIDADE:
        return int(math.ceil(quantidade_total))
    return int(math.ceil(quantidade_total / units_per_package))


class PackagingAllocator:
    """Aplica as regras de embalagem aos pedidos."""

    def __init__(self, rules: Sequence[PackagingRule]):
        self.rules = tuple(rules)

    def _find(self, slot: PackagingSlot, modality: Modality) -> Optional[PackagingRule]:
        candidates = [rule for rule in self.rules if rule.serves(modality)]
        for rule in candidates:
            if slot.pattern.search(rule.normalized_name):
                return rule
        if slot is STORE_BAG:
            # Sem nome compatível: primeira regra marcada para Loja/Todos
            for rule in self.rules:
                if Modality.LOJA in rule.modalidades or Modality.TODOS in rule.modalidades:
                    return rule
        return None

    def allocate(self, group: OrderGroup) -> OrderGroup:
        """Preenche ``custo_embalagem`` e ``embalagens`` do pedido."""
        group.embalagens = []
        group.custo_embalagem = 0.0

        quantidade_total = group.quantidade_total
        if quantidade_total <= 0 or not self.rules:
            return group

        modality = modality_for(group.header.get("logistica"))
        applied: List[AppliedPackaging] = []
        for slot in SLOTS_BY_MODALITY[modality]:
            rule = self._find(slot, modality)
            if rule is None:
                continue
            strategy = rule.estrategia or slot.default_strategy
            quantidade = resolve_quantity(strategy, quantidade_total, rule.unidades_por_embalagem)
            applied.append(
                AppliedPackaging(
                    nome=rule.nome,
                    custo=rule.custo,
                    quantidade=quantidade,
                    custo_calculado=rule.custo * quantidade,
                )
            )

        group.embalagens = applied
        group.custo_embalagem = sum(item.custo_calculado for item in applied)
        if not applied:
            logger.debug(f"Nenhuma regra de embalagem aplicada ao pedido {group.code} ({modality.value})")
        return group
