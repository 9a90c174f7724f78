"""Request/response value objects."""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

import httpx

from .exceptions import InvalidResponseError

RATE_LIMIT_FALLBACK_MESSAGE = "All API keys have been rate limited for this request"


@dataclass(frozen=True)
class RequestSpec:
    """One logical request, immutable for the whole dispatch.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: Path relative to the base URL (may be empty, "/", absolute or relative)
        body: None, str, bytes or a JSON-serializable object
        headers: Caller headers, override the defaults

    Example:
        >>> spec = RequestSpec('POST', '/v1/chat/completions', body={'model': 'gpt-4o'})
    """

    method: str
    path: str = ''
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, 'method', self.method.upper())
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers or {})))


@dataclass(frozen=True)
class UpstreamResponse:
    """A completed HTTP exchange.

    Produced once per exchange and never mutated.

    Attributes:
        status_code: HTTP status
        headers: Response headers (lower-case names, read-only)
        data: Raw response body as text
        synthesized: True if no upstream produced this response
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    data: str = ''
    synthesized: bool = False

    def __post_init__(self):
        if not isinstance(self.headers, MappingProxyType):
            normalized = {str(k).lower(): v for k, v in dict(self.headers or {}).items()}
            object.__setattr__(self, 'headers', MappingProxyType(normalized))

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> 'UpstreamResponse':
        """Build from a fully read httpx response."""
        return cls(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            data=response.text,
        )

    @classmethod
    def rate_limit_fallback(cls, message: str = RATE_LIMIT_FALLBACK_MESSAGE) -> 'UpstreamResponse':
        """429 returned when every key was rate limited and no upstream 429 is at hand."""
        body = {
            'error': {
                'message': message,
                'type': 'rate_limit_exceeded',
                'code': 'rate_limit_exceeded',
            }
        }
        return cls(
            status_code=429,
            headers={'content-type': 'application/json'},
            data=json.dumps(body),
            synthesized=True,
        )

    @property
    def text(self) -> str:
        return self.data

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """
        Parse body as JSON.

        Raises:
            InvalidResponseError: body is not valid JSON
        """
        try:
            return json.loads(self.data)
        except (TypeError, ValueError) as e:
            raise InvalidResponseError(f"Response body is not valid JSON: {e}")

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)
