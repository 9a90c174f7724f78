"""
Транспортный уровень: один ключ, несколько физических попыток.

TransportRetrier отправляет запрос с одним API ключом. При сбросе
соединения или сбое TLS повторяет тот же запрос с тем же ключом
(exponential backoff, потолок max_delay). Статус коды не интерпретирует -
любой завершённый обмен, включая 5xx, возвращается как есть.
"""

from typing import Any, Mapping, Optional

import httpx

from .config import RetryPolicy
from .exceptions import TransportError, classify_transport_exception
from .logging import get_logger, safe_log
from .response import UpstreamResponse
from .retry_engine import RetryEngine, SleepFunc
from .utils import mask_api_key, resolve_url, serialize_body

DEFAULT_HEADERS = {
    'Content-Type': 'application/json',
}


class TransportRetrier:
    """
    Отправка одного запроса с одним ключом и retry транспортных сбоев.

    httpx клиент принадлежит вызывающему коду (FallbackClient), здесь
    только используется.

    Examples:
        >>> async with httpx.AsyncClient() as http:
        ...     retrier = TransportRetrier(http, "https://api.openai.com")
        ...     response = await retrier.send("GET", "/v1/models", credential="sk-...")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        policy: Optional[RetryPolicy] = None,
        logger=None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Args:
            client: httpx.AsyncClient для отправки
            base_url: Базовый URL upstream
            policy: Политика повторов (по умолчанию RetryPolicy())
            logger: Лог-синк с методами debug/info/warning/error
            sleep: Функция ожидания (по умолчанию asyncio.sleep)
        """
        self._client = client
        self.base_url = base_url
        self.policy = policy or RetryPolicy()
        self._logger = logger or get_logger()
        self._sleep = sleep

    def build_headers(
        self,
        credential: str,
        headers: Optional[Mapping[str, str]] = None,
        content_length: Optional[int] = None,
    ) -> httpx.Headers:
        """
        Заголовки запроса.

        Дефолты (JSON + Bearer) перекрываются заголовками вызывающего кода
        без учёта регистра. Content-Length всегда вычисляется здесь.
        """
        request_headers = httpx.Headers(DEFAULT_HEADERS)
        request_headers['Authorization'] = f"Bearer {credential}"

        for name, value in (headers or {}).items():
            request_headers[name] = value

        if content_length is not None:
            request_headers['Content-Length'] = str(content_length)

        return request_headers

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        credential: str,
    ) -> UpstreamResponse:
        """
        Отправить запрос, повторяя при временных транспортных ошибках.

        Args:
            method: HTTP метод
            path: Путь относительно base_url
            body: Тело (None, str, bytes или JSON-сериализуемый объект)
            headers: Дополнительные заголовки
            credential: API ключ

        Returns:
            UpstreamResponse с любым статусом

        Raises:
            TransientTransportError: retry исчерпаны
            FatalTransportError: ошибка не подлежит повтору
        """
        method = method.upper()
        url = resolve_url(self.base_url, path)
        content, content_length = serialize_body(method, body)
        request_headers = self.build_headers(credential, headers, content_length)
        masked_key = mask_api_key(credential)

        # Счётчик свой на каждый вызов
        engine = RetryEngine(self.policy, sleep=self._sleep)

        while True:
            try:
                response = await self._client.request(
                    method,
                    url,
                    content=content,
                    headers=request_headers,
                )
                return UpstreamResponse.from_httpx(response)
            except (httpx.RequestError, OSError) as e:
                error = classify_transport_exception(
                    e, url, credential=masked_key, attempts=engine.attempt
                )

            if not engine.should_retry(error):
                self._log_failure(error, engine, masked_key, method, path)
                raise error from error.original

            wait_time = engine.get_wait_time()
            safe_log(
                self._logger,
                'warning',
                f"Retriable error (attempt {engine.attempt + 1}/{self.policy.max_attempts})",
                masked_key=masked_key,
                method=method,
                path=path,
                error=str(error.original or error),
                delay_ms=round(wait_time * 1000, 2),
            )

            await engine.async_wait()
            engine.increment()

    def _log_failure(
        self,
        error: TransportError,
        engine: RetryEngine,
        masked_key: str,
        method: str,
        path: str,
    ) -> None:
        if error.retryable:
            message = f"Retriable error - max retries ({self.policy.max_attempts}) exceeded"
        else:
            message = "Request failed"

        safe_log(
            self._logger,
            'error',
            message,
            masked_key=masked_key,
            method=method,
            path=path,
            error=str(error.original or error),
            error_type=type(error).__name__,
            retries=engine.attempt,
        )
