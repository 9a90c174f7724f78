"""
Иерархия исключений Fallback Client.

Классификация:
- TemporaryError (retryable=True) - можно ретраить
- FatalError (fatal=True) - НЕ ретраить никогда

Rate limit (429 и "мягкий" 429 в теле ответа) исключением не является -
это результат классификации ответа, см. core/classifier.py.
"""

from typing import Optional

import httpx

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FallbackClientException(Exception):
    """Базовое исключение Fallback Client."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ВРЕМЕННЫЕ ОШИБКИ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TemporaryError(FallbackClientException):
    """
    Временная ошибка - можно ретраить.

    Примеры: сброс соединения, сбой TLS record layer.
    """
    retryable = True

class TransportError(TemporaryError):
    """
    Запрос не дошёл до конца на транспортном уровне.

    В отличие от HTTP ошибки (есть статус код), здесь ответа нет вообще.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        credential: Замаскированный ключ, с которым шёл запрос
        original: Исходное исключение транспорта
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        credential: Optional[str] = None,
        original: Optional[BaseException] = None,
    ):
        self.url = url
        self.credential = credential
        self.original = original

        full_message = f"{message}"
        if url:
            full_message += f" (url: {url})"
        if credential:
            full_message += f" (key: {credential})"
        super().__init__(full_message)

class TransientTransportError(TransportError):
    """
    Временная транспортная ошибка, retry на том же ключе исчерпаны.

    Примеры:
    - ECONNRESET / Connection reset by peer
    - SSL routines, bad record mac, SSL alert
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        credential: Optional[str] = None,
        original: Optional[BaseException] = None,
        attempts: int = 0,
    ):
        self.attempts = attempts
        msg = message
        if attempts:
            msg += f" (after {attempts} retries)"
        super().__init__(msg, url=url, credential=credential, original=original)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАТАЛЬНЫЕ ОШИБКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FatalError(FallbackClientException):
    """
    Фатальная ошибка - НЕ ретраить.

    Примеры: DNS, connection refused, невалидный ответ, битый конфиг.
    """
    fatal = True

class FatalTransportError(FatalError, TransportError):
    """
    Транспортная ошибка, которую нет смысла повторять на том же ключе.

    Диспетчер всё равно попробует следующий ключ.
    """
    retryable = False

class InvalidResponseError(FatalError):
    """
    Невалидный ответ.

    Примеры:
    - Битый JSON
    - Неожиданный формат данных
    """
    pass

class ConfigurationError(FatalError):
    """Ошибка конфигурации."""
    pass

class InvalidRequestError(FatalError):
    """
    Тело запроса нельзя сериализовать.

    Ошибка вызывающего кода: поднимается до перебора ключей, пул не трогаем.
    """
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СПЕЦИАЛЬНЫЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class KeyExhaustionError(FallbackClientException):
    """
    Все ключи перебраны, ответа нет и ошибки транспорта тоже нет.

    На практике - пустой набор кандидатов.

    Args:
        total_candidates: Сколько ключей выдал пул
        rate_limited_count: Сколько из них получили rate limit
    """

    def __init__(
        self,
        message: str = "All API keys exhausted without clear error",
        total_candidates: int = 0,
        rate_limited_count: int = 0,
    ):
        self.total_candidates = total_candidates
        self.rate_limited_count = rate_limited_count
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# Подстроки TLS/SSL сбоев. Первые четыре - формат OpenSSL из node,
# остальные - как их рендерит ssl модуль Python.
SSL_ERROR_MARKERS = (
    'SSL routines',
    'ssl3_read_bytes',
    'bad record mac',
    'SSL alert',
    'DECRYPTION_FAILED_OR_BAD_RECORD_MAC',
    'SSLV3_ALERT',
)

CONNECTION_RESET_MARKERS = (
    'ECONNRESET',
    'connection reset',
)


def is_ssl_error(error_message: Optional[str]) -> bool:
    """
    Похоже ли сообщение на сбой TLS/SSL уровня.

    Examples:
        >>> is_ssl_error("error:1408F119:SSL routines:ssl3_get_record:decryption failed")
        True
        >>> is_ssl_error("Name or service not known")
        False
    """
    if not error_message:
        return False
    return any(marker in error_message for marker in SSL_ERROR_MARKERS)


def is_retriable_error(error_message: Optional[str]) -> bool:
    """
    Можно ли повторить запрос на том же ключе.

    Retriable: сброс соединения пиром или сбой TLS.

    Examples:
        >>> is_retriable_error("read ECONNRESET")
        True
        >>> is_retriable_error("[Errno 104] Connection reset by peer")
        True
        >>> is_retriable_error("[Errno 111] Connection refused")
        False
    """
    if not error_message:
        return False
    lowered = error_message.lower()
    if any(marker.lower() in lowered for marker in CONNECTION_RESET_MARKERS):
        return True
    return is_ssl_error(error_message)


def describe_transport_exception(exc: BaseException) -> str:
    """
    Собрать текст ошибки вместе с цепочкой причин.

    httpx часто оборачивает исходную ssl/socket ошибку, и нужная
    подстрока (например "[SSL: ...]") живёт только в __cause__.
    """
    parts = []
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or current.__class__.__name__
        parts.append(f"{current.__class__.__name__}: {text}")
        current = current.__cause__ or current.__context__
    return " <- ".join(parts)


def classify_transport_exception(
    exc: BaseException,
    url: str,
    credential: Optional[str] = None,
    attempts: int = 0,
) -> TransportError:
    """
    Конвертировать исключение httpx (RequestError) или OSError в наше.

    Ошибки чтения ответа (например, битый gzip) тоже считаются
    транспортными: повторять их на том же ключе нет смысла.

    Args:
        exc: Исходное исключение
        url: URL запроса
        credential: Замаскированный ключ
        attempts: Сколько retry уже сделано

    Returns:
        TransientTransportError если ошибка retriable, иначе FatalTransportError

    Examples:
        >>> exc = httpx.ReadError("read ECONNRESET")
        >>> our_exc = classify_transport_exception(exc, "https://api.openai.com")
        >>> assert isinstance(our_exc, TransientTransportError)
    """
    description = describe_transport_exception(exc)

    if is_retriable_error(description):
        return TransientTransportError(
            str(exc) or description,
            url=url,
            credential=credential,
            original=exc,
            attempts=attempts,
        )

    if isinstance(exc, httpx.TimeoutException):
        message = f"Request timeout: {exc}"
    elif isinstance(exc, httpx.ConnectError):
        message = f"Connection error: {exc}"
    elif isinstance(exc, httpx.DecodingError):
        message = f"Response decoding error: {exc}"
    else:
        message = str(exc) or description

    return FatalTransportError(message, url=url, credential=credential, original=exc)
