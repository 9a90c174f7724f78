"""
Pytest configuration and fixtures for fallback-client-core tests.
"""

import logging
from typing import List, Optional

import pytest

from fallback_client.core.logging.filters import clear_correlation_id
from fallback_client.core.rotator import IterationStats


class ScriptedContext:
    """Iteration context that hands out a fixed list of candidates."""

    def __init__(self, candidates: List[str], with_mark_failed: bool = True):
        self._candidates = list(candidates)
        self._position = 0
        self.attempted: List[str] = []
        self.rate_limited: List[str] = []
        self.failed: List[str] = []
        self._last_failed: Optional[str] = None
        if not with_mark_failed:
            self.mark_failed = None

    def next_candidate(self) -> Optional[str]:
        if self._position >= len(self._candidates):
            return None
        key = self._candidates[self._position]
        self._position += 1
        self.attempted.append(key)
        return key

    def mark_rate_limited(self, credential: str) -> None:
        self.rate_limited.append(credential)
        self._last_failed = credential

    def mark_failed(self, credential: str) -> None:
        self.failed.append(credential)
        self._last_failed = credential

    def stats(self) -> IterationStats:
        return IterationStats(
            total_candidates=len(self._candidates),
            rate_limited_count=len(self.rate_limited),
        )

    def last_failed_credential(self) -> Optional[str]:
        return self._last_failed

    def all_attempted_were_rate_limited(self) -> bool:
        return all(key in self.rate_limited for key in self.attempted)


class ScriptedPool:
    """Pool with deterministic candidates; records what the dispatcher reports back."""

    def __init__(self, candidates: List[str]):
        self.candidates = list(candidates)
        self.contexts: List[ScriptedContext] = []
        self.recorded: List[Optional[str]] = []

    def create_iteration_context(self) -> ScriptedContext:
        context = ScriptedContext(self.candidates)
        self.contexts.append(context)
        return context

    def record_last_failed_credential(self, credential: Optional[str]) -> None:
        self.recorded.append(credential)


class RecordingSleep:
    """Async sleep replacement that only records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class RecordingLogger:
    """Log sink that keeps (level, message, fields) tuples."""

    def __init__(self):
        self.records = []

    def _record(self, level, message, fields):
        self.records.append((level, message, fields))

    def debug(self, message, **fields):
        self._record('debug', message, fields)

    def info(self, message, **fields):
        self._record('info', message, fields)

    def warning(self, message, **fields):
        self._record('warning', message, fields)

    def error(self, message, **fields):
        self._record('error', message, fields)

    def messages(self, level=None):
        return [m for lvl, m, _ in self.records if level is None or lvl == level]


class ExplodingLogger:
    """Log sink whose every method raises."""

    def _explode(self, message, **fields):
        raise RuntimeError("log sink is down")

    debug = info = warning = error = _explode


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def keys():
    """Three distinct keys long enough to be masked as first4...last4."""
    return [
        "sk-first-aaaaaaaaaaaa1111",
        "sk-second-bbbbbbbbbbb2222",
        "sk-third-cccccccccccc3333",
    ]


@pytest.fixture
def scripted_pool(keys):
    return ScriptedPool(keys)


@pytest.fixture
def make_pool():
    """Factory for pools with a custom candidate list."""
    return ScriptedPool


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def exploding_logger():
    return ExplodingLogger()


@pytest.fixture(autouse=True)
def reset_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


@pytest.fixture
def restore_package_logger():
    """Put the 'fallback_client' stdlib logger back the way the test found it."""
    package_logger = logging.getLogger("fallback_client")
    saved = (package_logger.level, package_logger.propagate, package_logger.handlers[:])
    yield package_logger
    package_logger.setLevel(saved[0])
    package_logger.propagate = saved[1]
    package_logger.handlers[:] = saved[2]
