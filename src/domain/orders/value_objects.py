"""Value objects do domínio de pedidos: fórmulas, regras de embalagem, taxas e colunas."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .normalizer import normalize_text, to_number

# Sentinelas gravadas pela tela de configurações com sentido de "não definido"
ALL_MARKETPLACES = "all"
NO_INTERACTION = "none"


class FormulaItemType(Enum):
    """Tipos de token de fórmula."""

    COLUMN = "column"
    NUMBER = "number"
    OPERATOR = "op"


@dataclass(frozen=True)
class FormulaItem:
    """Um token de expressão montada pelo usuário."""

    type: FormulaItemType
    value: str
    label: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormulaItem":
        raw_type = data.get("type", "")
        try:
            item_type = FormulaItemType(raw_type)
        except ValueError:
            raise ValueError(f"Invalid formula item type: {raw_type}")
        value = data.get("value", "")
        return cls(
            type=item_type,
            value=str(value) if value is not None else "",
            label=str(data.get("label") or value or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "value": self.value, "label": self.label}


@dataclass(frozen=True)
class Interaction:
    """Combina o resultado de um cálculo com o valor de um campo existente."""

    target_column: str
    operator: str

    def __post_init__(self) -> None:
        if self.operator not in ("+", "-"):
            raise ValueError(f"Invalid interaction operator: {self.operator}")
        if not self.target_column:
            raise ValueError("Interaction target column is required")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Interaction"]:
        if not data:
            return None
        target = data.get("targetColumn") or ""
        if not target or target == NO_INTERACTION:
            return None
        return cls(target_column=target, operator=str(data.get("operator", "+")))

    def to_dict(self) -> Dict[str, str]:
        return {"targetColumn": self.target_column, "operator": self.operator}


@dataclass(frozen=True)
class CustomCalculation:
    """Fórmula nomeada e persistida que gera uma coluna extra por pedido."""

    id: str
    name: str
    formula: Tuple[FormulaItem, ...] = ()
    is_percentage: bool = False
    target_marketplace: Optional[str] = None
    interaction: Optional[Interaction] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Calculation id is required")
        # Listas viram tupla imutável
        object.__setattr__(self, "formula", tuple(self.formula))
        if self.target_marketplace == ALL_MARKETPLACES:
            object.__setattr__(self, "target_marketplace", None)

    def applies_to(self, origem: Any) -> bool:
        """Se um pedido do canal informado recebe este cálculo."""
        if not self.target_marketplace:
            return True
        return normalize_text(origem) == normalize_text(self.target_marketplace)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomCalculation":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            formula=tuple(FormulaItem.from_dict(item) for item in data.get("formula") or ()),
            is_percentage=bool(data.get("isPercentage", False)),
            target_marketplace=data.get("targetMarketplace") or None,
            interaction=Interaction.from_dict(data.get("interaction")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "formula": [item.to_dict() for item in self.formula],
            "isPercentage": self.is_percentage,
        }
        if self.target_marketplace:
            data["targetMarketplace"] = self.target_marketplace
        if self.interaction:
            data["interaction"] = self.interaction.to_dict()
        return data


class Modality(Enum):
    """Modalidade de entrega que orienta as regras de embalagem."""

    LOJA = "Loja"
    DELIVERY = "Delivery"
    TODOS = "Todos"

    @classmethod
    def parse(cls, value: Any) -> "Modality":
        text = normalize_text(value)
        for member in cls:
            if member.value.lower() == text:
                return member
        if text in ("all", "ambos"):
            return cls.TODOS
        raise ValueError(f"Invalid modality: {value}")


class QuantityStrategy(Enum):
    """Quantas embalagens uma regra consome por pedido."""

    POR_PEDIDO = "por_pedido"
    POR_UNIDADE = "por_unidade"
    POR_N_UNIDADES = "por_n_unidades"


@dataclass(frozen=True)
class PackagingRule:
    """Regra de custo de embalagem, casada por padrão de nome e modalidade."""

    nome: str
    custo: float
    modalidades: Tuple[Modality, ...] = ()
    estrategia: Optional[QuantityStrategy] = None
    unidades_por_embalagem: int = 2

    def __post_init__(self) -> None:
        object.__setattr__(self, "modalidades", tuple(self.modalidades))
        if self.unidades_por_embalagem < 1:
            raise ValueError("unidades_por_embalagem must be at least 1")

    @property
    def normalized_name(self) -> str:
        return normalize_text(self.nome)

    def serves(self, modality: Modality) -> bool:
        """Regras sem modalidade atendem todas."""
        if not self.modalidades:
            return True
        return modality in self.modalidades or Modality.TODOS in self.modalidades

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PackagingRule":
        estrategia = data.get("estrategia")
        return cls(
            nome=str(data.get("nome") or ""),
            custo=to_number(data.get("custo")),
            modalidades=tuple(Modality.parse(m) for m in data.get("modalidades") or ()),
            estrategia=QuantityStrategy(estrategia) if estrategia else None,
            unidades_por_embalagem=int(data.get("unidades_por_embalagem") or 2),
        )


@dataclass(frozen=True)
class CreditFee:
    """Taxa percentual para um número de parcelas no crédito."""

    numero: int
    taxa: float


@dataclass(frozen=True)
class FeeSchedule:
    """Tabela de taxas de uma operadora de cartão."""

    nome: str
    taxa_debito: float = 0.0
    taxas_credito: Tuple[CreditFee, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "taxas_credito", tuple(self.taxas_credito))

    def matches(self, instituicao: Any) -> bool:
        return normalize_text(self.nome) == normalize_text(instituicao)

    def credit_fee(self, parcelas: int) -> float:
        """Taxa percentual para o número de parcelas; 0 quando fora da tabela."""
        for entry in self.taxas_credito:
            if entry.numero == parcelas:
                return entry.taxa
        return 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeeSchedule":
        return cls(
            nome=str(data.get("nome") or ""),
            taxa_debito=to_number(data.get("taxaDebito")),
            taxas_credito=tuple(
                CreditFee(numero=int(to_number(entry.get("numero"))), taxa=to_number(entry.get("taxa")))
                for entry in data.get("taxasCredito") or ()
            ),
        )


@dataclass(frozen=True)
class ColumnDef:
    """Metadado de coluna usado na renderização da tabela."""

    id: str
    label: str
    is_sortable: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ColumnDef":
        column_id = str(data.get("id", ""))
        return cls(
            id=column_id,
            label=str(data.get("label") or column_id),
            is_sortable=bool(data.get("isSortable", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "isSortable": self.is_sortable}
