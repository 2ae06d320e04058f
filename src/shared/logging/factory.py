"""
Logging factory with structured logging and LGPD compliance.
"""

import logging
import os

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import (
    CallsiteParameter,
    CallsiteParameterAdder,
    JSONRenderer,
    KeyValueRenderer,
    TimeStamper,
    UnicodeDecoder,
    add_log_level,
    format_exc_info,
)
from structlog.stdlib import BoundLogger, ProcessorFormatter, add_logger_name

from .sanitizers import LGPDProcessor

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_logger(name: str) -> BoundLogger:
    """
    Get a structured logger bound to the sales engine service context.

    Args:
        name: Logger name (e.g., "application.materialize_orders")

    Returns:
        Structured logger with LGPD masking applied at render time
    """
    return structlog.get_logger(name).bind(
        service="painel-vendas",
        version=os.getenv("SERVICE_VERSION", "0.1.0"),
        environment=os.getenv("ENVIRONMENT", "development"),
    )


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    json_logs: bool = True,
    include_caller_info: bool = True,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Domain modules log through ``logging.getLogger(__name__)``; the
    ProcessorFormatter installed here renders those records with the same
    processor chain as structlog loggers.

    Args:
        environment: Environment name (development, staging, production, test)
        log_level: Minimum log level
        json_logs: Render JSON instead of key=value lines
        include_caller_info: Add file, function and line in development
    """
    processors = [
        merge_contextvars,
        TimeStamper(fmt="ISO", utc=True),
        add_log_level,
        add_logger_name,
        UnicodeDecoder(),
        LGPDProcessor(),
    ]

    if include_caller_info and environment == "development":
        processors.append(
            CallsiteParameterAdder(
                parameters=[
                    CallsiteParameter.FILENAME,
                    CallsiteParameter.FUNC_NAME,
                    CallsiteParameter.LINENO,
                ],
                additional_ignores=["structlog", "logging"],
            )
        )

    processors.append(format_exc_info)

    if json_logs:
        renderer = JSONRenderer(sort_keys=True)
    else:
        renderer = KeyValueRenderer(key_order=["timestamp", "level", "event", "logger"])

    level = _get_log_level_int(log_level)

    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        ProcessorFormatter(processors=[ProcessorFormatter.remove_processors_meta, renderer],
                           foreign_pre_chain=processors)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


def _get_log_level_int(level: str) -> int:
    """Convert string log level to integer."""
    return _LEVELS.get(str(level).upper(), logging.INFO)
