"""Cálculo de taxas de cartão por pedido a partir das tabelas das operadoras."""

import logging
from typing import Any, Mapping, Optional, Sequence

from .aggregates import OrderGroup
from .normalizer import normalize_text, to_number
from .value_objects import FeeSchedule

logger = logging.getLogger(__name__)


class FeeCalculator:
    """
    Calculadora de taxas de cartão.

    Operadora sem tabela ou modo de pagamento desconhecido resultam em
    taxa 0, nunca em erro.
    """

    def __init__(self, schedules: Sequence[FeeSchedule]):
        self.schedules = tuple(schedules)

    def find_schedule(self, instituicao: Any) -> Optional[FeeSchedule]:
        for schedule in self.schedules:
            if schedule.matches(instituicao):
                return schedule
        return None

    def fee_percent(self, cost: Mapping[str, Any]) -> float:
        """Percentual de taxa aplicável a um registro de custo."""
        schedule = self.find_schedule(cost.get("instituicao_financeira"))
        if schedule is None:
            return 0.0

        payment = normalize_text(f"{cost.get('modo_de_pagamento') or ''} {cost.get('tipo_pagamento') or ''}")
        if "debito" in payment:
            return schedule.taxa_debito
        if "credito" in payment:
            parcelas = int(to_number(cost.get("parcela"))) or 1
            return schedule.credit_fee(parcelas)
        return 0.0

    def calculate(self, group: OrderGroup) -> OrderGroup:
        """Preenche ``taxa_total_cartao`` = Σ valor × taxa% / 100."""
        total = 0.0
        for cost in group.costs:
            percent = self.fee_percent(cost)
            total += to_number(cost.get("valor")) * percent / 100
        group.taxa_total_cartao = total
        return group
