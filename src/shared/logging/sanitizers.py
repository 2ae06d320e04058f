"""
LGPD-compliant data sanitizers for logging.

Customer names, documents and contact data show up in uploaded sales sheets;
they must never reach the log sink in clear text.
"""

import re
from typing import Any, Callable

from structlog.types import EventDict, WrappedLogger

REDACTED = "***REDACTED***"

# Field names that are always redacted
_SENSITIVE_FIELD = re.compile(
    r"password|secret|token|api_?key|credential|cpf|cnpj|card_number|cvv"
)


def _mask_name(value: str) -> str:
    """Keep only the initials of each name part."""
    parts = value.split()
    if not parts:
        return "***"
    return " ".join(f"{p[0]}." for p in parts)


def _mask_email(value: str) -> str:
    """Mask email keeping domain."""
    local, sep, domain = value.rpartition("@")
    if not sep:
        return "***"
    if len(local) > 2:
        return f"{local[0]}***@{domain}"
    return f"***@{domain}"


def _mask_phone(value: str) -> str:
    """Mask phone number keeping the last 2 digits."""
    digits = re.sub(r"\D", "", value)
    return f"***{digits[-2:]}" if len(digits) > 4 else "***"


def _mask_file_name(value: str) -> str:
    """Uploaded file names may embed a customer name; keep the extension only."""
    _, dot, extension = value.rpartition(".")
    return f"***.{extension}" if dot else "***"


_MASKERS: dict[str, Callable[[str], str]] = {
    "nome": _mask_name,
    "email": _mask_email,
    "phone": _mask_phone,
    "source_file": _mask_file_name,
}

# Event keys that keep a recognizable fragment, by masker
_PARTIAL_FIELDS = {
    "nomeCliente": "nome",
    "nome_cliente": "nome",
    "cliente": "nome",
    "entregador": "nome",
    "vendedor": "nome",
    "email": "email",
    "phone": "phone",
    "telefone": "phone",
    "source_file": "source_file",
    "sourceFile": "source_file",
}


class LGPDProcessor:
    """Structlog processor that masks customer data before rendering."""

    def __call__(
        self,
        logger: WrappedLogger,
        name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return sanitize_for_log(event_dict)


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_for_log(value)
    if isinstance(value, list):
        return [sanitize_for_log(item) if isinstance(item, dict) else item for item in value]
    return value


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize a dictionary for LGPD-compliant logging.

    Args:
        data: Event dictionary (nested dicts and lists are walked)

    Returns:
        Sanitized copy; the input is left untouched
    """
    sanitized = {}
    for key, value in data.items():
        if _SENSITIVE_FIELD.search(key.lower()):
            sanitized[key] = REDACTED
        elif key in _PARTIAL_FIELDS:
            sanitized[key] = None if value is None else _MASKERS[_PARTIAL_FIELDS[key]](str(value))
        else:
            sanitized[key] = _sanitize_value(value)
    return sanitized


def mask_sensitive_data(data_type: str, value: str) -> str:
    """
    Mask a single value according to its data type.

    Args:
        data_type: One of "nome", "email", "phone", "source_file"
        value: Value to mask

    Returns:
        Masked value; unknown types are masked completely
    """
    if not value:
        return "***"
    masker = _MASKERS.get(data_type)
    if masker is None:
        return "***MASKED***"
    return masker(value)
