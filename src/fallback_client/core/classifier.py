"""
Классификация завершённого HTTP обмена.

Только rate limit провайдера переключает ключ. Остальные 4xx/5xx -
проблема вызывающего кода, они отдаются как есть.
"""

import json
from enum import Enum
from typing import Any, Optional

SOFT_RATE_LIMIT_CODE = "429"
RATE_LIMIT_ERROR_TYPE = "rate_limit_exceeded"


class ResponseClass(str, Enum):
    """Результат классификации."""
    SUCCESS = "success"
    HARD_RATE_LIMITED = "hard_rate_limited"
    SOFT_RATE_LIMITED = "soft_rate_limited"

    @property
    def is_rate_limited(self) -> bool:
        return self is not ResponseClass.SUCCESS


def _parse_json(body: Any) -> Optional[Any]:
    """JSON или None - битое тело не считается ошибкой."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode('utf-8')
        except UnicodeDecodeError:
            return None
    if not isinstance(body, str) or not body:
        return None
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        return None


def is_soft_rate_limited(body: Any) -> bool:
    """
    Есть ли в теле встроенная ошибка rate limit.

    Ищем объект ``error`` с ``code == "429"`` (строкой) или
    ``type == "rate_limit_exceeded"``.

    Examples:
        >>> is_soft_rate_limited('{"error": {"type": "rate_limit_exceeded"}}')
        True
        >>> is_soft_rate_limited('{"ok": true}')
        False
        >>> is_soft_rate_limited('not json')
        False
    """
    payload = _parse_json(body)
    if not isinstance(payload, dict):
        return False

    error = payload.get('error')
    if not isinstance(error, dict):
        return False

    return (
        error.get('code') == SOFT_RATE_LIMIT_CODE
        or error.get('type') == RATE_LIMIT_ERROR_TYPE
    )


def classify(status_code: int, body: Any) -> ResponseClass:
    """
    Классифицировать ответ по статусу и телу.

    Args:
        status_code: HTTP статус
        body: Тело ответа (str / bytes / None)

    Returns:
        ResponseClass

    Examples:
        >>> classify(429, '')
        <ResponseClass.HARD_RATE_LIMITED: 'hard_rate_limited'>
        >>> classify(200, '{"error": {"code": "429"}}')
        <ResponseClass.SOFT_RATE_LIMITED: 'soft_rate_limited'>
        >>> classify(500, 'Internal Server Error')
        <ResponseClass.SUCCESS: 'success'>
    """
    if status_code == 429:
        return ResponseClass.HARD_RATE_LIMITED

    if status_code == 200 and is_soft_rate_limited(body):
        return ResponseClass.SOFT_RATE_LIMITED

    return ResponseClass.SUCCESS


class ResponseClassifier:
    """
    Обёртка над classify() для инъекции в диспетчер.

    Examples:
        >>> classifier = ResponseClassifier()
        >>> classifier.classify(response)
    """

    def classify(self, response) -> ResponseClass:
        return classify(response.status_code, response.data)
