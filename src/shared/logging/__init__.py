"""
Structured logging for the sales engine with LGPD compliance.

This module provides:
- structlog configuration shared with the standard library root logger
- LGPD masking of customer data
- Batch/correlation id propagation through contextvars
"""

from .factory import configure_logging, get_logger
from .sanitizers import mask_sensitive_data, sanitize_for_log
from .context import (
    with_batch_context,
    get_batch_id,
    get_correlation_id,
    generate_batch_id,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "sanitize_for_log",
    "with_batch_context",
    "get_batch_id",
    "get_correlation_id",
    "generate_batch_id",
]
