"""Agregado de pedido: grupo de linhas canônicas com o mesmo código."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .normalizer import CanonicalRow, is_empty_cell

# Campo derivado -> atributo do OrderGroup
DERIVED_FIELDS = {
    "quantidadeTotal": "quantidade_total",
    "final": "final",
    "custoTotal": "custo_total",
    "custoFrete": "custo_frete",
    "valorDescontos": "valor_descontos",
    "custoEmbalagem": "custo_embalagem",
    "taxaTotalCartao": "taxa_total_cartao",
    "total_valor_parcelas": "total_valor_parcelas",
}


@dataclass(frozen=True)
class Parcela:
    """Parcela coletada das linhas da planilha de recebimentos."""

    valor: float
    modo: Any = None
    bandeira: Any = None
    instituicao: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valor": self.valor,
            "modo": self.modo,
            "bandeira": self.bandeira,
            "instituicao": self.instituicao,
        }


@dataclass(frozen=True)
class AppliedPackaging:
    """Regra de embalagem aplicada ao pedido, com a quantidade resolvida."""

    nome: str
    custo: float
    quantidade: int
    custo_calculado: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nome": self.nome,
            "custo": self.custo,
            "quantidade": self.quantidade,
            "custoCalculado": self.custo_calculado,
        }


@dataclass
class OrderGroup:
    """
    Todas as linhas canônicas de um mesmo código de pedido normalizado.

    ``rows`` guarda as linhas na ordem de ingestão. O cabeçalho reúne os
    campos mesclados (primeiro valor não vazio vence); os demais atributos
    são preenchidos pelos estágios do pipeline.
    """

    code: str
    rows: List[CanonicalRow] = field(default_factory=list)
    header: Dict[str, Any] = field(default_factory=dict)
    sub_rows: List[CanonicalRow] = field(default_factory=list)
    parcelas: List[Parcela] = field(default_factory=list)
    total_valor_parcelas: float = 0.0
    costs: List[Dict[str, Any]] = field(default_factory=list)

    quantidade_total: float = 0.0
    final: float = 0.0
    custo_total: float = 0.0
    custo_frete: float = 0.0
    valor_descontos: float = 0.0
    custo_embalagem: float = 0.0
    embalagens: List[AppliedPackaging] = field(default_factory=list)
    taxa_total_cartao: float = 0.0
    custom_data: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def data(self) -> Optional[datetime]:
        value = self.header.get("data")
        return value if isinstance(value, datetime) else None

    @property
    def non_detail_rows(self) -> List[CanonicalRow]:
        detail_ids = {id(row) for row in self.sub_rows}
        return [row for row in self.rows if id(row) not in detail_ids]

    def has_field(self, name: str) -> bool:
        """Se o pedido conhece o campo, mesmo com valor vazio."""
        if name in DERIVED_FIELDS or name in self.header or name in self.custom_data:
            return True
        return any(name in row for row in self.rows)

    def field_value(self, name: str) -> Any:
        """
        Valor de um campo como visto pelas fórmulas e exportações.

        Campos derivados têm precedência sobre o cabeçalho; campos fora do
        cabeçalho usam o primeiro valor não vazio entre as linhas.
        """
        if name in DERIVED_FIELDS:
            return getattr(self, DERIVED_FIELDS[name])
        value = self.header.get(name)
        if not is_empty_cell(value):
            return value
        for row in self.rows:
            candidate = row.get(name)
            if not is_empty_cell(candidate):
                return candidate
        return None

    def to_document(self) -> Dict[str, Any]:
        """Documento de cabeçalho achatado, para exibição em tabela e persistência."""
        document: Dict[str, Any] = {"id": f"header-{self.code}"}
        document.update(self.header)
        document["codigo"] = self.code
        for name, attribute in DERIVED_FIELDS.items():
            document[name] = getattr(self, attribute)
        document.update(self.custom_data)
        document["customData"] = dict(self.custom_data)
        document["subRows"] = [dict(row) for row in self.sub_rows]
        document["parcelas"] = [p.to_dict() for p in self.parcelas]
        document["embalagens"] = [e.to_dict() for e in self.embalagens]
        document["costs"] = [dict(cost) for cost in self.costs]
        return document
