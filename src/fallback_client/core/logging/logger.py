"""
Main logger for the fallback client.

``FallbackClientLogger`` is the log sink the dispatcher and the transport
write to: ``debug/info/warning/error(message, **fields)``. Anything with
the same four methods can be injected instead (tests use a recorder).
"""

import logging
from typing import Optional, Any

from .config import LoggingConfig, LogLevel
from .formatters import get_formatter
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data

DEFAULT_LOGGER_NAME = "fallback_client"


class FallbackClientLogger:
    """
    Structured logger wrapper around ``logging.Logger``.

    Without a config the wrapper only forwards to the named stdlib logger
    and leaves handler setup to the application. With a config it owns
    the logger: installs handlers, formatter and filters, and stops
    propagation to the root logger.

    Example:
        >>> logger = FallbackClientLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> logger.info("Attempt succeeded", masked_key="sk-a...1234", status_code=200)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = DEFAULT_LOGGER_NAME):
        self.config = config
        self.name = name
        self._closed = False
        self._logger = logging.getLogger(name)

        if config is not None:
            self._configure(config)

    def _configure(self, config: LoggingConfig) -> None:
        level = self._get_level(config.level)
        self._logger.setLevel(level)
        self._logger.propagate = False
        self._logger.handlers.clear()

        filters = []
        if config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if config.extra_fields:
            filters.append(ExtraFieldsFilter(config.extra_fields))

        formatter = get_formatter(config.format.value)

        if config.enable_console:
            self._logger.addHandler(create_console_handler(
                level=level,
                formatter=formatter,
                filters=filters
            ))

        if config.enable_file and config.file_path:
            self._logger.addHandler(create_file_handler(
                file_path=config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=config.max_bytes,
                backup_count=config.backup_count,
                filters=filters
            ))

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    def _log(self, level: int, message: str, fields: dict) -> None:
        if self._closed or not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, message, extra=mask_sensitive_data(fields))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def close(self) -> None:
        """
        Flush and close handlers this wrapper installed. Idempotent.

        A wrapper created without a config never installed handlers and
        leaves the stdlib logger untouched.
        """
        if self._closed:
            return

        if self.config is not None:
            for handler in self._logger.handlers[:]:
                try:
                    handler.flush()
                    handler.close()
                except Exception:
                    pass
                self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_logger: Optional[FallbackClientLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> FallbackClientLogger:
    """
    Get the package-wide logger.

    ``config`` is only used on the first call; use configure_logging()
    to replace it later.
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = FallbackClientLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> FallbackClientLogger:
    """
    Replace the package-wide logger with a configured one.

    Example:
        >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="colored"))
    """
    global _default_logger
    if _default_logger is not None:
        _default_logger.close()
    _default_logger = FallbackClientLogger(config)
    return _default_logger


def safe_log(logger: Any, level: str, message: str, **fields: Any) -> None:
    """Записать сообщение в лог-синк; ошибки самого синка игнорируются."""
    try:
        getattr(logger, level)(message, **fields)
    except Exception:
        pass
