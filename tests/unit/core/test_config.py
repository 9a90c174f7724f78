"""Тесты для системы конфигурации."""

import pytest

from fallback_client.core.config import (
    DEFAULT_BASE_URL,
    ClientConfig,
    RetryPolicy,
    TimeoutConfig,
)
from fallback_client.core.logging import LoggingConfig

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TimeoutConfig
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_timeout_config_defaults():
    """Тест дефолтных значений."""
    config = TimeoutConfig()
    assert config.connect == 10
    assert config.read == 600
    assert config.total is None

def test_timeout_config_as_tuple():
    """Тест метода as_tuple."""
    assert TimeoutConfig(connect=3, read=45).as_tuple() == (3, 45)

@pytest.mark.parametrize("kwargs, message", [
    ({"connect": -1}, "connect timeout must be positive"),
    ({"read": 0}, "read timeout must be positive"),
    ({"total": -5}, "total timeout must be positive"),
])
def test_timeout_config_validation(kwargs, message):
    """Тест валидации таймаутов."""
    with pytest.raises(ValueError, match=message):
        TimeoutConfig(**kwargs)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RetryPolicy
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_retry_policy_defaults():
    """Тест дефолтных значений."""
    policy = RetryPolicy()
    assert policy.max_attempts == 10
    assert policy.base_delay == pytest.approx(0.010)
    assert policy.backoff_factor == 2.0
    assert policy.max_delay == pytest.approx(0.100)

def test_retry_policy_default_schedule():
    """10, 20, 40, 80 мс, дальше потолок 100 мс."""
    policy = RetryPolicy()
    delays = [policy.delay_for(n) for n in range(10)]
    assert delays == pytest.approx([0.01, 0.02, 0.04, 0.08] + [0.1] * 6)

def test_retry_policy_custom_schedule():
    policy = RetryPolicy(max_attempts=3, base_delay=0.5, backoff_factor=3, max_delay=2)
    assert [policy.delay_for(n) for n in range(3)] == pytest.approx([0.5, 1.5, 2.0])

def test_retry_policy_zero_attempts_allowed():
    assert RetryPolicy(max_attempts=0).max_attempts == 0

@pytest.mark.parametrize("kwargs", [
    {"max_attempts": -1},
    {"base_delay": -0.1},
    {"backoff_factor": 0.5},
    {"max_delay": -1},
])
def test_retry_policy_validation(kwargs):
    """Тест валидации политики."""
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ClientConfig
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def test_client_config_defaults():
    config = ClientConfig()
    assert config.base_url == DEFAULT_BASE_URL == "https://api.openai.com"
    assert dict(config.headers) == {}
    assert config.verify_ssl is True
    assert config.logging is None

def test_client_config_base_url_not_normalized():
    assert ClientConfig(base_url="https://api.example.com/").base_url == "https://api.example.com/"

@pytest.mark.parametrize("base_url", ["", "ftp://example.com", "api.example.com"])
def test_client_config_invalid_base_url(base_url):
    with pytest.raises(ValueError):
        ClientConfig(base_url=base_url)

def test_client_config_headers_frozen():
    """Заголовки нельзя изменить после создания."""
    config = ClientConfig(headers={"X-Trace": "1"})
    with pytest.raises(TypeError):
        config.headers["X-New"] = "value"

def test_client_config_create_number_timeout():
    config = ClientConfig.create(timeout=60, max_retries=3)
    assert config.timeout.read == 60
    assert config.timeout.connect == 10
    assert config.retry.max_attempts == 3

def test_client_config_create_tuple_timeout():
    config = ClientConfig.create(timeout=(5, 30))
    assert config.timeout.as_tuple() == (5, 30)

def test_client_config_create_timeout_config():
    timeout = TimeoutConfig(connect=1, read=2)
    assert ClientConfig.create(timeout=timeout).timeout is timeout

def test_client_config_create_with_logging():
    logging_config = LoggingConfig.create(level="DEBUG")
    assert ClientConfig.create(logging=logging_config).logging is logging_config

def test_with_retry_returns_new_config():
    config = ClientConfig.create(headers={"X-A": "1"})
    updated = config.with_retry(RetryPolicy(max_attempts=0))

    assert updated is not config
    assert updated.retry.max_attempts == 0
    assert config.retry.max_attempts == 10
    assert dict(updated.headers) == {"X-A": "1"}

def test_with_headers_merges():
    config = ClientConfig.create(headers={"X-A": "1"})
    updated = config.with_headers({"X-B": "2"})

    assert dict(updated.headers) == {"X-A": "1", "X-B": "2"}
    assert dict(config.headers) == {"X-A": "1"}
