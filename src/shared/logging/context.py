"""
Context management for structured logging.

An import batch or a materialization run binds a correlation id so every
log line emitted while it runs can be tied back to it.
"""

import uuid
from contextvars import ContextVar
from typing import Any, Callable, Optional, TypeVar

import structlog

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_batch_id: ContextVar[Optional[str]] = ContextVar("batch_id", default=None)

T = TypeVar("T")


def with_batch_context(
    batch_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator that binds batch/correlation ids to all logs within a call.

    Args:
        batch_id: Import batch identifier (generated when omitted)
        correlation_id: Correlation ID (defaults to the enclosing one, then the batch id)

    Returns:
        Decorated function with logging context
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        def wrapper(*args: Any, **kwargs: Any) -> T:
            b_id = batch_id or generate_batch_id()
            corr_id = correlation_id or _correlation_id.get() or b_id

            batch_token = _batch_id.set(b_id)
            corr_token = _correlation_id.set(corr_id)
            bound = structlog.contextvars.bind_contextvars(batch_id=b_id, correlation_id=corr_id)

            try:
                return func(*args, **kwargs)
            finally:
                structlog.contextvars.reset_contextvars(**bound)
                _batch_id.reset(batch_token)
                _correlation_id.reset(corr_token)

        wrapper.__name__ = getattr(func, "__name__", "wrapper")
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator


def generate_batch_id() -> str:
    """Generate a unique import batch ID."""
    return f"batch_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def get_batch_id() -> Optional[str]:
    """Get the current batch ID from context."""
    return _batch_id.get()
