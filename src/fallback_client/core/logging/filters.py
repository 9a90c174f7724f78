"""
Log filters for correlation ids and static fields.

Correlation ids live in a ContextVar: every asyncio task (one dispatch)
sees its own value, concurrent dispatches do not overwrite each other.
"""

import logging
from contextvars import ContextVar
from typing import Dict, Any, Optional

_correlation_id: ContextVar[Optional[str]] = ContextVar("fallback_client_correlation_id", default=None)


def set_correlation_id(correlation_id: str) -> None:
    """
    Set correlation ID for the current task.

    Example:
        >>> set_correlation_id("req-12345")
        >>> logger.info("Dispatch started")  # Will include correlation_id
    """
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Correlation ID for the current task, or None."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Forget the correlation ID of the current task."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to records emitted inside a dispatch."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id and not hasattr(record, 'correlation_id'):
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields to every record.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "gateway", "environment": "production"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
