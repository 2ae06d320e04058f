"""
Normalizador de campos para planilhas de vendas, logística e custos.

Converte rótulos de coluna escritos por humanos em nomes canônicos e limpa
os valores das células (números em formato BR/US, datas, códigos de pedido).
Uma célula ruim nunca derruba a linha inteira: o valor original é mantido ou
o campo é descartado.
"""

import logging
import math
import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as date_parser

from .codes import normalize_code

logger = logging.getLogger(__name__)

CanonicalRow = Dict[str, Any]

# Rótulo normalizado -> campo canônico
HEADER_MAP: Dict[str, str] = {
    "data": "data",
    "codigo": "codigo",
    "tipo": "tipo",
    "cliente": "nomeCliente",
    "nome cliente": "nomeCliente",
    "nomecliente": "nomeCliente",
    "vendedor": "vendedor",
    "cidade": "cidade",
    "origem": "origem",
    "fidelizacao": "fidelizacao",
    "logistica": "logistica",
    "item": "item",
    "descricao": "descricao",
    "qtd": "quantidade",
    "quantidade": "quantidade",
    "quantidade movimentada": "quantidade",
    "custo unitario": "custoUnitario",
    "custounitario": "custoUnitario",
    "valor unitario": "valorUnitario",
    "valorunitario": "valorUnitario",
    "final": "final",
    "valor final": "final",
    "valor entrega": "custoFrete",
    "custofrete": "custoFrete",
    "valor credito": "valorCredito",
    "valorcredito": "valorCredito",
    "valor descontos": "valorDescontos",
    "valordescontos": "valorDescontos",
    "origem cliente": "origemCliente",
    "origemcliente": "origemCliente",
    "entregador": "entregador",
    "valor": "valor",
    "mov estoque": "mov_estoque",
    "mov_estoque": "mov_estoque",
    # planilhas de apoio (recebimentos)
    "valor da parcela": "valor_da_parcela",
    "modo de pagamento": "modo_de_pagamento",
    "instituicao financeira": "instituicao_financeira",
    "tipo de pagamento": "tipo_pagamento",
    "bandeira 1": "bandeira1",
    "bandeira 2": "bandeira2",
    "parcelas 1": "parcelas1",
    "parcelas 2": "parcelas2",
    "valor parcela 1": "valorParcela1",
    "valor parcela 2": "valorParcela2",
    "taxa cartao 1": "taxaCartao1",
    "taxa cartao 2": "taxaCartao2",
}

# Planilha de custos: o mesmo rótulo tem outro significado
COST_SHEET_OVERRIDES: Dict[str, str] = {
    "tipo": "tipo_pagamento",
    "parcelas": "parcela",
    "parcelas1": "parcela",
    "parcelas 1": "parcela",
    "mov_estoque": "codigo",
    "mov estoque": "codigo",
    "valor_da_parcela": "valor",
    "valor da parcela": "valor",
}

# Coluna duplicada exportada pela planilha
IGNORED_HEADERS = frozenset({"valor_final"})

DATE_FORMATS = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
)

EXCEL_EPOCH = datetime(1899, 12, 30)

EMPTY_MARKERS = frozenset({"", "n/a", "na", "-", "--"})

_DATE_LIKE = (
    re.compile(r"^\d{4}[-/]\d{2}[-/]\d{2}$"),
    re.compile(r"^\d{2}[-/]\d{2}[-/]\d{4}$"),
)
_NEGATIVE_PARENS = re.compile(r"^\((.*)\)$")
_PLAIN_NUMBER = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)$")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def strip_accents(text: str) -> str:
    """Remove diacríticos via decomposição NFD."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(value: Any) -> str:
    """Texto em minúsculas, sem acentos e com espaços colapsados."""
    text = strip_accents(str(value if value is not None else "").replace("\u00a0", " "))
    return _WHITESPACE.sub(" ", text.lower()).strip()


def normalize_header(label: Any) -> str:
    """
    Normaliza um rótulo de coluna.

    Minúsculas, NBSP vira espaço, acentos removidos, pontuação descartada
    e espaços colapsados. ``_`` é preservado.
    """
    text = strip_accents(str(label).lower().replace("\u00a0", " "))
    text = _PUNCTUATION.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def resolve_field_name(normalized: str, overrides: Optional[Mapping[str, str]] = None) -> str:
    """
    Resolve o nome canônico de um rótulo já normalizado.

    Ordem: overrides da planilha, tabela estática, heurísticas por
    substring e, por fim, snake_case do próprio rótulo (nunca descartado).
    """
    if overrides and normalized in overrides:
        return overrides[normalized]
    if normalized in HEADER_MAP:
        return HEADER_MAP[normalized]

    if "cliente" in normalized and "origem" not in normalized:
        return "nomeCliente"
    if "vendedor" in normalized:
        return "vendedor"
    if "codigo" in normalized or "pedido" in normalized:
        return "codigo"
    if "descri" in normalized:
        return "descricao"

    return normalized.replace(" ", "_")


def is_empty_cell(value: Any) -> bool:
    """Célula vazia: None, NaN ou texto em branco / n/a / na / - / --."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.replace("\u00a0", " ").strip().lower() in EMPTY_MARKERS
    if isinstance(value, float):
        return math.isnan(value)
    return False


def is_date_like(text: str) -> bool:
    """Strings no formato yyyy-mm-dd ou dd/mm/yyyy não são números."""
    return any(pattern.match(text) for pattern in _DATE_LIKE)


def coerce_numeric(value: Any) -> Any:
    """
    Converte valores monetários BR/US em float.

    Retorna o valor original quando a conversão não é possível.

    Examples:
        "1.234,56" -> 1234.56
        "(123,45)" -> -123.45
        "R$ 99,90" -> 99.9
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value

    text = value.replace("\u00a0", " ").strip()
    if not text or is_date_like(text):
        return value

    text = _WHITESPACE.sub("", text)
    text = re.sub(r"R\$", "", text, flags=re.IGNORECASE)

    negative = False
    match = _NEGATIVE_PARENS.match(text)
    if match:
        negative = True
        text = match.group(1)

    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        text = text.replace(",", ".")

    # Plain decimals only: "12E3" and "1_000" stay text
    if not _PLAIN_NUMBER.match(text):
        return value

    number = float(text)
    return -number if negative else number


def to_number(value: Any) -> float:
    """Valor numérico finito da célula, ou 0 quando não há número."""
    if isinstance(value, bool) or value is None:
        return 0.0
    coerced = coerce_numeric(value)
    if isinstance(coerced, (int, float)) and not isinstance(coerced, bool):
        number = float(coerced)
        return number if math.isfinite(number) else 0.0
    return 0.0


def coerce_date(value: Any) -> Optional[datetime]:
    """
    Converte a célula em datetime.

    Aceita datetime/date, timestamps do banco de documentos (objetos com
    ``to_datetime()`` ou ``ToDatetime()``), números seriais de planilha
    (0 < n < 100000, época 1899-12-30) e strings nos formatos brasileiros
    mais comuns, com ISO por último. Retorna None quando não há data.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    for converter in ("to_datetime", "ToDatetime"):
        method = getattr(value, converter, None)
        if callable(method):
            converted = method()
            return converted if isinstance(converted, datetime) else None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if 0 < value < 100000:
            return EXCEL_EPOCH + timedelta(days=float(value))
        return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return date_parser.isoparse(text.replace("/", "-"))
    except (ValueError, OverflowError):
        return None


class FieldNormalizer:
    """
    Normalizador de linhas brutas para linhas canônicas.

    Cada instância carrega os overrides de rótulo da coleção de origem
    (vendas, logística ou custos) sobre a tabela única de cabeçalhos.
    """

    def __init__(self, overrides: Optional[Mapping[str, str]] = None):
        self.overrides = dict(overrides or {})

    @classmethod
    def for_collection(cls, collection: str) -> "FieldNormalizer":
        """Normalizador configurado para a coleção informada."""
        if collection == "custos":
            return cls(COST_SHEET_OVERRIDES)
        return cls()

    def field_name(self, label: Any) -> Optional[str]:
        """Nome canônico do rótulo, ou None se a coluna deve ser ignorada."""
        normalized = normalize_header(label)
        if normalized in IGNORED_HEADERS:
            return None
        return resolve_field_name(normalized, self.overrides)

    def normalize_row(self, raw: Mapping[Any, Any]) -> CanonicalRow:
        """
        Normaliza uma linha bruta.

        O código de pedido é normalizado; uma data não reconhecida é
        removida da linha em vez de armazenada como texto.
        """
        row: CanonicalRow = {}
        for label, value in raw.items():
            name = self.field_name(label)
            if name is None:
                continue
            row[name] = coerce_numeric(value)

        if row.get("codigo") is not None:
            row["codigo"] = normalize_code(row["codigo"])

        if "data" in row:
            parsed = coerce_date(row["data"])
            if parsed is None:
                if not is_empty_cell(row["data"]):
                    logger.debug(f"Data não reconhecida descartada para o pedido {row.get('codigo')}")
                del row["data"]
            else:
                row["data"] = parsed

        return row
