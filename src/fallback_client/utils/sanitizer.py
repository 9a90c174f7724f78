# src/fallback_client/utils/sanitizer.py
"""
Утилита для маскирования чувствительных данных в логах.

API ключи upstream - главное, что нельзя утечь в лог. Ключи в полях
лога маскируются через mask_api_key() заранее, здесь - страховка для
всего остального: заголовков, тел, текстов ошибок.
"""

import re
from typing import Any, Dict


# Список чувствительных полей (case-insensitive, поиск по подстроке)
SENSITIVE_KEYS = {
    # Пароли
    'password', 'passwd', 'pwd',
    # Токены
    'token', 'access_token', 'refresh_token', 'bearer',
    'jwt', 'id_token',
    # Секреты
    'secret', 'client_secret', 'secret_key',
    # API ключи
    'api_key', 'apikey', 'key', 'private_key',
    # Аутентификация
    'authorization', 'auth',
    # Сессии и куки
    'cookie', 'session',
    # Учетные данные
    'credential', 'credentials',
}

# Поля, значения которых уже прошли mask_api_key()
PREMASKED_FIELDS = {
    'masked_key',
    'last_failed_key',
}

# Регулярные выражения для обнаружения sensitive данных в строках
SENSITIVE_PATTERNS = [
    # Bearer tokens в заголовках и текстах ошибок
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1***REDACTED***'),
    # Ключи OpenAI-формата в свободном тексте
    (re.compile(r'\b(sk-[A-Za-z0-9])[A-Za-z0-9_\-]{8,}([A-Za-z0-9]{4})\b'), r'\1...\2'),
    # API ключи (формат: key=value или key:value)
    (re.compile(r'(api[_-]?key[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1***REDACTED***'),
    # Пароли (формат: password=value)
    (re.compile(r'(password[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1***REDACTED***'),
]


def mask_sensitive_data(data: Any, mask: str = "***REDACTED***") -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Args:
        data: Данные для маскирования
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными чувствительными полями

    Examples:
        >>> mask_sensitive_data({"Authorization": "Bearer sk-secret", "method": "POST"})
        {'Authorization': '***REDACTED***', 'method': 'POST'}

        >>> mask_sensitive_data("request failed: Bearer sk-secret")
        'request failed: Bearer ***REDACTED***'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return _mask_string(data)

    if isinstance(data, dict):
        return _mask_dict(data, mask)

    if isinstance(data, (list, tuple)):
        masked_items = [mask_sensitive_data(item, mask) for item in data]
        return type(data)(masked_items)

    # Для других типов (объекты, etc) возвращаем как есть
    return data


def _mask_dict(data: Dict[Any, Any], mask: str) -> Dict[Any, Any]:
    result = {}

    for key, value in data.items():
        key_lower = key.lower() if isinstance(key, str) else str(key).lower()

        if key_lower in PREMASKED_FIELDS:
            result[key] = value
        elif _is_sensitive_key(key_lower):
            result[key] = mask
        else:
            result[key] = mask_sensitive_data(value, mask)

    return result


def _mask_string(text: str) -> str:
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _is_sensitive_key(key: str) -> bool:
    """Точное или частичное совпадение с SENSITIVE_KEYS."""
    if key in SENSITIVE_KEYS:
        return True
    return any(sensitive_key in key for sensitive_key in SENSITIVE_KEYS)


def mask_headers(headers: Dict[str, str], mask: str = "***REDACTED***") -> Dict[str, str]:
    """
    Маскирует чувствительные заголовки HTTP.

    Examples:
        >>> mask_headers({"Authorization": "Bearer sk-1", "Content-Type": "application/json"})
        {'Authorization': '***REDACTED***', 'Content-Type': 'application/json'}
    """
    return _mask_dict(dict(headers), mask)
