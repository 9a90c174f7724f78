"""Fallback Client - HTTP client that rotates API keys on rate limits."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .async_client import FallbackClient
from .core.config import (
    ClientConfig,
    TimeoutConfig,
    RetryPolicy,
)
from .core.exceptions import (
    FallbackClientException,
    TransportError,
    TransientTransportError,
    FatalTransportError,
    InvalidRequestError,
    InvalidResponseError,
    ConfigurationError,
    KeyExhaustionError,
)
from .core.classifier import ResponseClass
from .core.dispatcher import CredentialFallbackDispatcher
from .core.response import UpstreamResponse
from .core.rotator import CredentialPool, CredentialIterationContext, IterationStats, KeyRotator
from .core.transport import TransportRetrier
from .core.utils import mask_api_key
from .core.logging import LoggingConfig, configure_logging

# NullHandler: без настройки приложением библиотека молчит
logging.getLogger('fallback_client').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("fallback-client-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Client
    "FallbackClient",
    "CredentialFallbackDispatcher",
    "TransportRetrier",

    # Config
    "ClientConfig",
    "TimeoutConfig",
    "RetryPolicy",
    "LoggingConfig",
    "configure_logging",

    # Keys
    "CredentialPool",
    "CredentialIterationContext",
    "IterationStats",
    "KeyRotator",
    "mask_api_key",

    # Responses
    "UpstreamResponse",
    "ResponseClass",

    # Exceptions
    "FallbackClientException",
    "TransportError",
    "TransientTransportError",
    "FatalTransportError",
    "InvalidRequestError",
    "InvalidResponseError",
    "ConfigurationError",
    "KeyExhaustionError",

    # Version
    "__version__",
]
