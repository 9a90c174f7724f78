"""Core модули Fallback Client."""

from .config import (
    TimeoutConfig,
    RetryPolicy,
    ClientConfig,
    DEFAULT_BASE_URL,
)
from .retry_engine import RetryEngine
from .exceptions import (
    FallbackClientException,
    TemporaryError,
    FatalError,
    TransportError,
    TransientTransportError,
    FatalTransportError,
    InvalidRequestError,
    InvalidResponseError,
    ConfigurationError,
    KeyExhaustionError,
    is_retriable_error,
    classify_transport_exception,
)
from .classifier import ResponseClass, ResponseClassifier, classify, is_soft_rate_limited
from .response import RequestSpec, UpstreamResponse
from .rotator import (
    CredentialPool,
    CredentialIterationContext,
    IterationStats,
    KeyRotator,
    RequestKeyContext,
)
from .transport import TransportRetrier
from .dispatcher import CredentialFallbackDispatcher
from .utils import mask_api_key, resolve_url

__all__ = [
    # Config
    "TimeoutConfig",
    "RetryPolicy",
    "ClientConfig",
    "DEFAULT_BASE_URL",
    # Retry
    "RetryEngine",
    "TransportRetrier",
    # Dispatch
    "CredentialFallbackDispatcher",
    "ResponseClass",
    "ResponseClassifier",
    "classify",
    "is_soft_rate_limited",
    "RequestSpec",
    "UpstreamResponse",
    # Keys
    "CredentialPool",
    "CredentialIterationContext",
    "IterationStats",
    "KeyRotator",
    "RequestKeyContext",
    "mask_api_key",
    "resolve_url",
    # Exceptions
    "FallbackClientException",
    "TemporaryError",
    "FatalError",
    "TransportError",
    "TransientTransportError",
    "FatalTransportError",
    "InvalidRequestError",
    "InvalidResponseError",
    "ConfigurationError",
    "KeyExhaustionError",
    "is_retriable_error",
    "classify_transport_exception",
]
