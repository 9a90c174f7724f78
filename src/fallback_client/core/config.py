"""
Система конфигурации для Fallback Client.

Все конфиги immutable (frozen dataclasses): один и тот же конфиг
разделяют все параллельные dispatch.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Union, TYPE_CHECKING, Mapping
from types import MappingProxyType

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_BASE_URL = "https://api.openai.com"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов.

    Args:
        connect: Таймаут подключения (сек)
        read: Таймаут чтения данных (сек)
        total: Лимит ожидания соединения из пула (опционально)

    Examples:
        >>> TimeoutConfig(connect=5, read=30)
        >>> TimeoutConfig(connect=3, read=600, total=900)
    """
    connect: float = 10
    read: float = 600
    total: Optional[float] = None

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read <= 0:
            raise ValueError("read timeout must be positive")
        if self.total is not None and self.total <= 0:
            raise ValueError("total timeout must be positive")

    def as_tuple(self) -> Tuple[float, float]:
        """Вернуть как (connect, read)."""
        return (self.connect, self.read)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY POLICY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryPolicy:
    """
    Политика повторов на транспортном уровне (один ключ).

    Касается только TransportRetrier: сколько раз повторить запрос
    с тем же ключом после сброса соединения или TLS сбоя.

    Args:
        max_attempts: Максимум повторов после первой попытки
        base_delay: Базовая задержка (сек)
        backoff_factor: Множитель для exponential backoff
        max_delay: Максимальная задержка (сек)

    Задержка перед повтором N (N с нуля):
        min(base_delay * backoff_factor ** N, max_delay)

    По умолчанию: 10, 20, 40, 80, 100, 100, ... мс - много быстрых
    повторов, рассчитано на локальные сбросы сокета, а не на перегрузку.

    Examples:
        >>> RetryPolicy()
        >>> RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=5)
    """
    max_attempts: int = 10
    base_delay: float = 0.010
    backoff_factor: float = 2.0
    max_delay: float = 0.100

    def __post_init__(self):
        """Валидация."""
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if self.max_delay < 0:
            raise ValueError("max_delay must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """
        Задержка перед повтором с номером attempt (с нуля).

        Examples:
            >>> [RetryPolicy().delay_for(n) for n in range(6)]
            [0.01, 0.02, 0.04, 0.08, 0.1, 0.1]
        """
        return min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze_dict(d: Optional[Dict[str, str]]) -> Mapping[str, str]:
    """
    Заморозить словарь.

    Example:
        >>> frozen = _freeze_dict({"X-Trace": "1"})
        >>> frozen["X-New"] = "value"  # Raises TypeError
    """
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))

@dataclass(frozen=True)
class ClientConfig:
    """
    Главная конфигурация FallbackClient.

    Args:
        base_url: Базовый URL upstream API (как есть, без нормализации)
        headers: Дополнительные заголовки для каждого запроса
        timeout: Конфигурация таймаутов
        retry: Политика транспортных повторов
        verify_ssl: Проверять SSL сертификаты
        logging: Конфигурация логирования (None = логгер пакета по умолчанию)

    Examples:
        >>> config = ClientConfig(base_url="https://api.openai.com")
        >>> config = ClientConfig.create(timeout=60, max_retries=5)
    """
    base_url: str = DEFAULT_BASE_URL
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    verify_ssl: bool = True
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Заморозить headers и проверить base_url."""
        if isinstance(self.headers, dict):
            object.__setattr__(self, 'headers', _freeze_dict(self.headers))

        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://: {self.base_url}")

    @classmethod
    def create(
        cls,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Union[float, Tuple[float, float], TimeoutConfig] = 600,
        max_retries: int = 10,
        base_delay: float = 0.010,
        backoff_factor: float = 2.0,
        max_delay: float = 0.100,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'ClientConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Базовый URL
            timeout: Таймаут (число, (connect, read) или TimeoutConfig)
            max_retries: Количество транспортных повторов на один ключ
            base_delay: Базовая задержка backoff (сек)
            backoff_factor: Множитель backoff
            max_delay: Потолок задержки (сек)
            verify_ssl: Проверять SSL
            headers: Заголовки
            logging: Конфигурация логирования

        Returns:
            ClientConfig instance

        Examples:
            >>> config = ClientConfig.create(timeout=60)
            >>> config = ClientConfig.create(timeout=(5, 60), max_retries=3)
        """
        if isinstance(timeout, TimeoutConfig):
            timeout_cfg = timeout
        elif isinstance(timeout, tuple):
            timeout_cfg = TimeoutConfig(connect=timeout[0], read=timeout[1])
        else:
            timeout_cfg = TimeoutConfig(read=timeout)

        retry_cfg = RetryPolicy(
            max_attempts=max_retries,
            base_delay=base_delay,
            backoff_factor=backoff_factor,
            max_delay=max_delay,
        )

        return cls(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout_cfg,
            retry=retry_cfg,
            verify_ssl=verify_ssl,
            logging=logging,
        )

    def with_retry(self, retry: RetryPolicy) -> 'ClientConfig':
        """
        Создать новый конфиг с другой политикой повторов.

        Example:
            >>> new_config = config.with_retry(RetryPolicy(max_attempts=0))
        """
        return ClientConfig(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            retry=retry,
            verify_ssl=self.verify_ssl,
            logging=self.logging,
        )

    def with_headers(self, headers: Dict[str, str]) -> 'ClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Example:
            >>> new_config = config.with_headers({"OpenAI-Organization": "org-1"})
        """
        merged = dict(self.headers)
        merged.update(headers)

        return ClientConfig(
            base_url=self.base_url,
            headers=merged,
            timeout=self.timeout,
            retry=self.retry,
            verify_ssl=self.verify_ssl,
            logging=self.logging,
        )
