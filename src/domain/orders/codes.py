"""
Resolução do código de pedido (chave de agrupamento).

Política única: alfanumérico em maiúsculas. Códigos puramente numéricos
produzem o mesmo resultado da política só-dígitos.
"""

import math
import re
from typing import Any, Mapping, Optional

_TRAILING_ZERO_DECIMAL = re.compile(r"^(\d+)\.0+$")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

# Colunas que podem carregar o código quando "codigo" não existe
CODE_CANDIDATE_KEYS = (
    "cod",
    "documento",
    "nf",
    "numero_documento",
    "mov_estoque",
    "movestoque",
    "pedido",
)


def normalize_code(value: Any) -> str:
    """
    Normaliza um código de pedido.

    NBSP vira espaço, ``123.0`` vira ``123``, apenas [A-Za-z0-9] é mantido,
    zeros à esquerda são removidos e o resto vai para maiúsculas.
    A função é idempotente.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            value = int(value)

    text = str(value).replace("\u00a0", " ").strip()
    match = _TRAILING_ZERO_DECIMAL.match(text)
    if match:
        text = match.group(1)

    text = _NON_ALNUM.sub("", text)
    text = text.lstrip("0")
    return text.upper()


def pick_code(
    raw: Mapping[str, Any],
    mapped: Mapping[str, Any],
    assoc_key: Optional[str] = None,
) -> str:
    """
    Resolve o código de uma linha de planilha de apoio.

    Tenta a coluna de associação escolhida pelo usuário (rótulo bruto ou
    canônico), depois ``codigo`` e por fim as colunas candidatas.
    Retorna string vazia quando nenhuma coluna produz código.
    """
    if assoc_key:
        for source in (raw, mapped):
            if assoc_key in source:
                code = normalize_code(source[assoc_key])
                if code:
                    return code

    code = normalize_code(mapped.get("codigo"))
    if code:
        return code

    for key in CODE_CANDIDATE_KEYS:
        if key in mapped:
            code = normalize_code(mapped[key])
            if code:
                return code
    return ""
