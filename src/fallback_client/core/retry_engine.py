"""
Retry engine для транспортных повторов.

Включает:
- Exponential backoff с потолком (без jitter)
- Решение о повторе по типу транспортной ошибки
- Асинхронное ожидание через подменяемую sleep функцию
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .config import RetryPolicy


SleepFunc = Callable[[float], Awaitable[None]]


class RetryEngine:
    """
    Счётчик попыток и расписание задержек для одного ключа.

    Создаётся заново на каждый send(), поэтому параллельные dispatch
    не делят счётчик.

    Examples:
        >>> engine = RetryEngine(RetryPolicy())
        >>> if engine.should_retry(error):
        >>>     await engine.async_wait()
        >>>     engine.increment()
    """

    def __init__(self, policy: RetryPolicy, sleep: Optional[SleepFunc] = None):
        """
        Args:
            policy: Политика повторов
            sleep: Функция ожидания (по умолчанию asyncio.sleep)
        """
        self.policy = policy
        self._sleep = sleep or asyncio.sleep
        self._attempt = 0

    def should_retry(self, error: Exception) -> bool:
        """
        Решить нужен ли повтор.

        Args:
            error: Исключение транспорта (наше, с флагом retryable)

        Returns:
            True если ошибка временная и лимит не исчерпан
        """
        if not getattr(error, 'retryable', False):
            return False

        # Фатальные ошибки НЕ ретраим
        if getattr(error, 'fatal', False):
            return False

        return self._attempt < self.policy.max_attempts

    def is_exhausted(self) -> bool:
        """Лимит повторов исчерпан."""
        return self._attempt >= self.policy.max_attempts

    def get_wait_time(self) -> float:
        """
        Вычислить время ожидания перед следующим повтором.

        Returns:
            Секунды: min(base_delay * factor ** attempt, max_delay)
        """
        return self.policy.delay_for(self._attempt)

    async def async_wait(self) -> float:
        """
        Подождать перед повтором, не блокируя event loop.

        Returns:
            Сколько секунд ждали
        """
        wait_time = self.get_wait_time()
        await self._sleep(wait_time)
        return wait_time

    def increment(self):
        """Увеличить счётчик попыток."""
        self._attempt += 1

    def reset(self):
        """Сбросить счётчик."""
        self._attempt = 0

    @property
    def attempt(self) -> int:
        """Сколько повторов уже сделано."""
        return self._attempt
