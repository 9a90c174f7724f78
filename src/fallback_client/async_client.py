"""
Асинхронный клиент с перебором API ключей на базе httpx.

Собирает вместе httpx.AsyncClient, TransportRetrier, пул ключей и
CredentialFallbackDispatcher и даёт обычный request/get/post API.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Union

import httpx

from .core.config import ClientConfig
from .core.dispatcher import CredentialFallbackDispatcher
from .core.logging import FallbackClientLogger, get_logger
from .core.response import UpstreamResponse
from .core.retry_engine import SleepFunc
from .core.rotator import CredentialPool, KeyRotator
from .core.transport import TransportRetrier


class FallbackClient:
    """
    HTTP клиент для upstream API с per-key rate limit.

    Example:
        >>> async with FallbackClient(["sk-first...", "sk-second..."]) as client:
        ...     response = await client.post("/v1/chat/completions", body=payload)
        ...     print(response.status_code, response.json())

        >>> # Свой пул ключей
        >>> client = FallbackClient(pool=my_pool, base_url="https://api.openai.com")
        >>> response = await client.get("/v1/models")
        >>> await client.close()

    Features:
        - Переключение ключа при 429 и "мягком" 429 в теле 200 ответа
        - Повторы на том же ключе при сбросе соединения и сбоях TLS
        - Любой другой ответ возвращается вызывающему коду как есть
    """

    def __init__(
        self,
        api_keys: Optional[Union[Iterable[str], CredentialPool]] = None,
        *,
        pool: Optional[CredentialPool] = None,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        logger=None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Args:
            api_keys: Ключи для KeyRotator или готовый пул
            pool: Готовый пул ключей
            base_url: Базовый URL (перекрывает config.base_url)
            config: ClientConfig
            http_client: Внешний httpx.AsyncClient (не закрывается клиентом)
            logger: Лог-синк (по умолчанию из config.logging или логгер пакета)
            sleep: Функция ожидания для backoff (для тестов)

        Raises:
            ValueError: не передан ни pool, ни api_keys, или переданы оба
        """
        # Пул можно передать и первым аргументом
        if pool is None and isinstance(api_keys, CredentialPool):
            pool, api_keys = api_keys, None

        if pool is None and api_keys is None:
            raise ValueError("Either api_keys or pool is required")
        if pool is not None and api_keys is not None:
            raise ValueError("Pass either api_keys or pool, not both")

        config = config or ClientConfig()
        if base_url is not None:
            config = ClientConfig(
                base_url=base_url,
                headers=config.headers,
                timeout=config.timeout,
                retry=config.retry,
                verify_ssl=config.verify_ssl,
                logging=config.logging,
            )
        self._config = config

        self._pool: CredentialPool = pool if pool is not None else KeyRotator(api_keys)

        self._owned_logger: Optional[FallbackClientLogger] = None
        if logger is None and config.logging is not None:
            self._owned_logger = FallbackClientLogger(config.logging)
            logger = self._owned_logger
        self._logger = logger or get_logger()

        self._timeout = httpx.Timeout(
            config.timeout.read,
            connect=config.timeout.connect,
            pool=config.timeout.total,
        )

        # Клиент создаётся лениво или при входе в context manager
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self._sleep = sleep
        self._dispatcher: Optional[CredentialFallbackDispatcher] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать httpx клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._config.verify_ssl,
            )
            self._dispatcher = None
        return self._client

    async def _get_dispatcher(self) -> CredentialFallbackDispatcher:
        client = await self._get_client()
        if self._dispatcher is None:
            retrier = TransportRetrier(
                client,
                self._config.base_url,
                policy=self._config.retry,
                logger=self._logger,
                sleep=self._sleep,
            )
            self._dispatcher = CredentialFallbackDispatcher(
                self._pool,
                retrier,
                logger=self._logger,
            )
        return self._dispatcher

    async def __aenter__(self) -> "FallbackClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Закрыть клиент и освободить ресурсы. Повторный вызов безопасен."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._dispatcher = None

        if self._owned_logger is not None:
            self._owned_logger.close()
            self._owned_logger = None

    # ==================== HTTP методы ====================

    async def request(
        self,
        method: str,
        path: str = '',
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> UpstreamResponse:
        """
        Выполнить логический запрос.

        Args:
            method: HTTP метод
            path: Путь относительно base_url
            body: Тело (str, bytes или JSON-сериализуемый объект)
            headers: Дополнительные заголовки (перекрывают дефолтные)

        Returns:
            UpstreamResponse - ответ upstream или синтезированный 429

        Raises:
            TransportError: ни один ключ не дал ответа из-за транспорта
            KeyExhaustionError: кандидатов не было
        """
        merged_headers: Dict[str, str] = dict(self._config.headers)
        if headers:
            merged_headers.update(headers)

        dispatcher = await self._get_dispatcher()
        return await dispatcher.dispatch(method, path, body, merged_headers)

    async def get(self, path: str = '', **kwargs) -> UpstreamResponse:
        """GET запрос."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str = '', body: Any = None, **kwargs) -> UpstreamResponse:
        """POST запрос."""
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str = '', body: Any = None, **kwargs) -> UpstreamResponse:
        """PUT запрос."""
        return await self.request("PUT", path, body, **kwargs)

    async def patch(self, path: str = '', body: Any = None, **kwargs) -> UpstreamResponse:
        """PATCH запрос."""
        return await self.request("PATCH", path, body, **kwargs)

    async def delete(self, path: str = '', **kwargs) -> UpstreamResponse:
        """DELETE запрос."""
        return await self.request("DELETE", path, **kwargs)

    # ==================== Properties ====================

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def pool(self) -> CredentialPool:
        return self._pool
