"""
Диспетчер с перебором API ключей.

Внешний цикл: берёт у пула свежий контекст перебора, пробует ключи по
одному, классифицирует ответ и решает - вернуть его или идти к
следующему ключу. Внутренний цикл (повторы на одном ключе) - в
TransportRetrier.

Переключение ключа вызывают только:
- 429 (жёсткий rate limit)
- 200 с ошибкой rate limit в теле (мягкий rate limit)
- транспортная ошибка после исчерпания повторов / фатальная транспортная ошибка

Любой другой ответ (включая 4xx/5xx) возвращается сразу как есть.
"""

import uuid
from typing import Any, Mapping, Optional

from .classifier import ResponseClass, ResponseClassifier
from .exceptions import KeyExhaustionError, TransportError
from .logging import get_logger, safe_log
from .logging.filters import clear_correlation_id, get_correlation_id, set_correlation_id
from .response import RequestSpec, UpstreamResponse
from .rotator import CredentialIterationContext, CredentialPool
from .transport import TransportRetrier
from .utils import mask_api_key, serialize_body


class CredentialFallbackDispatcher:
    """
    Доставка одного логического запроса с перебором ключей.

    Состояние одного dispatch (контекст перебора, последняя ошибка,
    последний 429) живёт в локальных переменных, поэтому параллельные
    dispatch независимы. Общий у них только пул.

    Examples:
        >>> dispatcher = CredentialFallbackDispatcher(KeyRotator(keys), retrier)
        >>> response = await dispatcher.dispatch("POST", "/v1/chat/completions", body=payload)
    """

    def __init__(
        self,
        pool: CredentialPool,
        retrier: TransportRetrier,
        *,
        classifier: Optional[ResponseClassifier] = None,
        logger=None,
    ):
        """
        Args:
            pool: Пул ключей
            retrier: Транспорт с повторами на одном ключе
            classifier: Классификатор ответов
            logger: Лог-синк с методами debug/info/warning/error
        """
        self._pool = pool
        self._retrier = retrier
        self._classifier = classifier or ResponseClassifier()
        self._logger = logger or get_logger()

    @property
    def pool(self) -> CredentialPool:
        return self._pool

    async def dispatch(
        self,
        method: str,
        path: str = '',
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> UpstreamResponse:
        """
        Выполнить запрос, перебирая ключи при rate limit и сбоях транспорта.

        Args:
            method: HTTP метод
            path: Путь относительно base_url
            body: Тело запроса
            headers: Дополнительные заголовки

        Returns:
            Ответ первого ключа, не получившего rate limit; последний
            429 (или синтезированный 429), если rate limit получили все

        Raises:
            TransportError: последняя транспортная ошибка, если хотя бы
                один ключ упал не по rate limit и успеха не было
            KeyExhaustionError: кандидатов не было и ошибок тоже
            InvalidRequestError: тело нельзя сериализовать (ключи не перебираются)
        """
        # Тело сериализуется один раз, до перебора ключей
        content, _ = serialize_body(method, body)
        spec = RequestSpec(method, path or '', content, headers or {})

        owns_correlation_id = get_correlation_id() is None
        if owns_correlation_id:
            set_correlation_id(uuid.uuid4().hex[:12])

        try:
            return await self._dispatch(spec)
        finally:
            if owns_correlation_id:
                clear_correlation_id()

    async def _dispatch(self, spec: RequestSpec) -> UpstreamResponse:
        context = self._pool.create_iteration_context()
        last_error: Optional[TransportError] = None
        last_response: Optional[UpstreamResponse] = None

        while True:
            credential = context.next_candidate()
            if credential is None:
                break

            masked_key = mask_api_key(credential)
            safe_log(
                self._logger,
                'info',
                f"Attempting {spec.method} {spec.path}",
                masked_key=masked_key,
                method=spec.method,
                path=spec.path,
            )

            try:
                response = await self._retrier.send(
                    spec.method,
                    spec.path,
                    spec.body,
                    spec.headers,
                    credential=credential,
                )
            except TransportError as e:
                safe_log(
                    self._logger,
                    'warning',
                    "Request failed - trying next key",
                    masked_key=masked_key,
                    method=spec.method,
                    path=spec.path,
                    outcome="transport_error",
                    error=str(e),
                )
                last_error = e
                self._mark_failed(context, credential)
                continue

            outcome = self._classifier.classify(response)

            if outcome is ResponseClass.HARD_RATE_LIMITED:
                safe_log(
                    self._logger,
                    'warning',
                    "Rate limited (429) - trying next key",
                    masked_key=masked_key,
                    method=spec.method,
                    path=spec.path,
                    outcome=outcome.value,
                )
                context.mark_rate_limited(credential)
                last_response = response
                continue

            if outcome is ResponseClass.SOFT_RATE_LIMITED:
                safe_log(
                    self._logger,
                    'warning',
                    "Soft rate limited (200 OK with 429 in body) - trying next key",
                    masked_key=masked_key,
                    method=spec.method,
                    path=spec.path,
                    outcome=outcome.value,
                )
                context.mark_rate_limited(credential)
                last_response = response
                continue

            safe_log(
                self._logger,
                'info',
                f"Success ({response.status_code})",
                masked_key=masked_key,
                method=spec.method,
                path=spec.path,
                outcome=outcome.value,
                status_code=response.status_code,
            )
            return response

        return self._on_exhausted(context, last_response, last_error)

    def _on_exhausted(
        self,
        context: CredentialIterationContext,
        last_response: Optional[UpstreamResponse],
        last_error: Optional[TransportError],
    ) -> UpstreamResponse:
        stats = context.stats()
        safe_log(
            self._logger,
            'warning',
            f"All {stats.total_candidates} keys tried for this request. "
            f"{stats.rate_limited_count} were rate limited.",
            total_candidates=stats.total_candidates,
            rate_limited_count=stats.rate_limited_count,
        )

        last_failed = context.last_failed_credential()
        if last_failed is not None:
            self._pool.record_last_failed_credential(last_failed)

        if context.all_attempted_were_rate_limited():
            safe_log(
                self._logger,
                'warning',
                "All keys rate limited for this request - returning 429",
            )
            return last_response or UpstreamResponse.rate_limit_fallback()

        if last_error is not None:
            raise last_error

        raise KeyExhaustionError(
            total_candidates=stats.total_candidates,
            rate_limited_count=stats.rate_limited_count,
        )

    @staticmethod
    def _mark_failed(context: CredentialIterationContext, credential: str) -> None:
        # mark_failed - необязательная часть контекста
        mark_failed = getattr(context, 'mark_failed', None)
        if callable(mark_failed):
            mark_failed(credential)
