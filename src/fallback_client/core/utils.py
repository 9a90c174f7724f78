"""
Utility functions for the fallback client.

Includes:
- API key masking for safe logging
- Base URL / path joining
- Request body serialization
"""

import json
from typing import Any, Optional, Tuple

from .exceptions import InvalidRequestError

# Placeholder for keys too short to show any part of
MASK_PLACEHOLDER = '***'


def mask_api_key(key: Optional[str]) -> str:
    """
    Render an API key for logs.

    Shows the first 4 and last 4 characters joined by ``...``. Keys
    shorter than 8 characters (or empty) are fully hidden.

    Examples:
        >>> mask_api_key('sk-abcdefghijklmnop1234')
        'sk-a...1234'
        >>> mask_api_key('short')
        '***'
        >>> mask_api_key(None)
        '***'
    """
    if not key or len(key) < 8:
        return MASK_PLACEHOLDER
    return f"{key[:4]}...{key[-4:]}"


def resolve_url(base_url: str, path: Optional[str]) -> str:
    """
    Join base URL and request path.

    Rules:
        - empty path or ``/`` -> bare base URL
        - path starting with ``/`` -> appended without doubling the slash
        - any other path -> appended with exactly one ``/`` between

    Examples:
        >>> resolve_url('https://api.openai.com', '')
        'https://api.openai.com'
        >>> resolve_url('https://api.openai.com/', '/v1/models')
        'https://api.openai.com/v1/models'
        >>> resolve_url('https://api.openai.com', 'v1/models')
        'https://api.openai.com/v1/models'
    """
    if not path or path == '/':
        return base_url

    if path.startswith('/'):
        if base_url.endswith('/'):
            return base_url + path[1:]
        return base_url + path

    if base_url.endswith('/'):
        return base_url + path
    return base_url + '/' + path


def serialize_body(method: str, body: Any) -> Tuple[Optional[bytes], Optional[int]]:
    """
    Serialize request body.

    GET requests and empty bodies are sent without a body. Strings and
    bytes pass through, everything else is JSON-encoded.

    Args:
        method: HTTP method
        body: Request body (None, str, bytes, or JSON-serializable object)

    Returns:
        (content bytes, byte length) or (None, None) if no body is sent

    Raises:
        InvalidRequestError: body cannot be JSON-encoded

    Examples:
        >>> serialize_body('POST', {'model': 'gpt-4o'})
        (b'{"model": "gpt-4o"}', 19)
        >>> serialize_body('GET', {'ignored': True})
        (None, None)
    """
    if body is None or method.upper() == 'GET':
        return None, None
    # {} and [] are still sent, an empty string is not
    if isinstance(body, (str, bytes)) and not body:
        return None, None

    if isinstance(body, bytes):
        content = body
    elif isinstance(body, str):
        content = body.encode('utf-8')
    else:
        try:
            content = json.dumps(body).encode('utf-8')
        except (TypeError, ValueError, RecursionError) as e:
            raise InvalidRequestError(f"Request body is not JSON-serializable: {e}") from e

    return content, len(content)
