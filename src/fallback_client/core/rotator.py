"""
Пул API ключей: интерфейс, который потребляет диспетчер, и простая
реализация в памяти.

Диспетчер видит пул только через CredentialPool / CredentialIterationContext,
поэтому в тестах подставляется детерминированный фейк, а в проде - любой
пул с учётом здоровья ключей и cooldown.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Set, runtime_checkable

from .exceptions import ConfigurationError
from .utils import mask_api_key


@dataclass(frozen=True)
class IterationStats:
    """Счётчики одного запроса."""
    total_candidates: int
    rate_limited_count: int


@runtime_checkable
class CredentialIterationContext(Protocol):
    """Перебор ключей для одного логического запроса."""

    def next_candidate(self) -> Optional[str]:
        """Следующий ключ или None, если кандидаты кончились."""
        ...

    def mark_rate_limited(self, credential: str) -> None:
        ...

    def stats(self) -> IterationStats:
        ...

    def last_failed_credential(self) -> Optional[str]:
        ...

    def all_attempted_were_rate_limited(self) -> bool:
        ...


@runtime_checkable
class CredentialPool(Protocol):
    """Общий для всех запросов пул ключей."""

    def create_iteration_context(self) -> CredentialIterationContext:
        ...

    def record_last_failed_credential(self, credential: Optional[str]) -> None:
        ...


class RequestKeyContext:
    """
    Контекст перебора ключей одного запроса.

    Выдаёт каждый ключ ровно один раз в заданном порядке. Живёт ровно
    один dispatch и не разделяется между параллельными запросами.
    """

    def __init__(self, keys: Iterable[str]):
        self._keys: List[str] = list(keys)
        self._position = 0
        self._attempted: List[str] = []
        self._rate_limited: Set[str] = set()
        self._last_failed: Optional[str] = None

    def next_candidate(self) -> Optional[str]:
        if self._position >= len(self._keys):
            return None
        key = self._keys[self._position]
        self._position += 1
        self._attempted.append(key)
        return key

    def mark_rate_limited(self, credential: str) -> None:
        self._rate_limited.add(credential)
        self._last_failed = credential

    def mark_failed(self, credential: str) -> None:
        """Ключ упал не по rate limit (транспорт)."""
        self._last_failed = credential

    def stats(self) -> IterationStats:
        return IterationStats(
            total_candidates=len(self._keys),
            rate_limited_count=len(self._rate_limited),
        )

    def last_failed_credential(self) -> Optional[str]:
        return self._last_failed

    def all_attempted_were_rate_limited(self) -> bool:
        # Пустой набор попыток - тоже "все были rate limited"
        return all(key in self._rate_limited for key in self._attempted)

    def __repr__(self) -> str:
        return (
            f"RequestKeyContext(keys={len(self._keys)}, attempted={len(self._attempted)}, "
            f"rate_limited={len(self._rate_limited)})"
        )


class KeyRotator:
    """
    Пул ключей в памяти с round-robin стартом.

    Каждый запрос перебирает все ключи, начиная со следующего после
    последнего упавшего: ключ, который только что словил rate limit,
    пробуется последним.

    Examples:
        >>> rotator = KeyRotator(["sk-aaaa...", "sk-bbbb..."])
        >>> ctx = rotator.create_iteration_context()
        >>> ctx.next_candidate()
    """

    def __init__(self, keys: Iterable[str]):
        """
        Args:
            keys: API ключи; пустые строки и дубликаты отбрасываются

        Raises:
            ConfigurationError: не осталось ни одного ключа
        """
        unique: List[str] = []
        for key in keys:
            key = (key or '').strip()
            if key and key not in unique:
                unique.append(key)

        if not unique:
            raise ConfigurationError("At least one API key is required")

        self._keys = unique
        self._last_failed: Optional[str] = None

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    @property
    def last_failed_key(self) -> Optional[str]:
        return self._last_failed

    def _ordered_keys(self) -> List[str]:
        if self._last_failed not in self._keys:
            return list(self._keys)
        start = self._keys.index(self._last_failed) + 1
        return self._keys[start:] + self._keys[:start]

    def create_iteration_context(self) -> RequestKeyContext:
        return RequestKeyContext(self._ordered_keys())

    def record_last_failed_credential(self, credential: Optional[str]) -> None:
        # Одно присваивание без await - безопасно на одном event loop
        if credential is not None:
            self._last_failed = credential

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        masked = ", ".join(mask_api_key(k) for k in self._keys)
        return f"KeyRotator([{masked}])"
