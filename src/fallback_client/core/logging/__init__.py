"""
Logging system for the fallback client.

Example:
    >>> from fallback_client.core.logging import configure_logging, LoggingConfig
    >>>
    >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    >>> logger.info("Attempting request", masked_key="sk-a...1234", method="GET", path="/v1/models")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import FallbackClientLogger, get_logger, configure_logging, safe_log
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "FallbackClientLogger",
    "get_logger",
    "configure_logging",
    "safe_log",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
