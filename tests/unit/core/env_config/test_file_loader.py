"""
Tests for YAML / JSON config file loading.
"""

import json

import pytest

from fallback_client.core.env_config.file_loader import (
    CONFIG_FILE_ENV_VAR,
    ConfigFileLoader,
    ConfigValidationError,
)
from fallback_client.core.exceptions import ConfigurationError
from fallback_client.core.logging import LogLevel

YAML_CONFIG = """
fallback_client:
  base_url: https://proxy.example.com/openai
  api_keys:
    - sk-first-key-0001
    - sk-second-key-0002
  headers:
    OpenAI-Organization: org-1
  timeout:
    connect: 5
    read: 120
  retry:
    max_attempts: 4
    base_delay: 0.05
  logging:
    level: DEBUG
    format: json
"""


class TestYaml:
    """Загрузка YAML."""

    def test_full_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(YAML_CONFIG, encoding="utf-8")

        loaded = ConfigFileLoader.from_yaml(path)

        assert loaded.config.base_url == "https://proxy.example.com/openai"
        assert loaded.api_keys == ["sk-first-key-0001", "sk-second-key-0002"]
        assert dict(loaded.config.headers) == {"OpenAI-Organization": "org-1"}
        assert loaded.config.timeout.as_tuple() == (5, 120)
        assert loaded.config.retry.max_attempts == 4
        assert loaded.config.retry.base_delay == 0.05
        assert loaded.config.retry.max_delay == 0.1
        assert loaded.config.logging.level == LogLevel.DEBUG

    def test_top_level_section_optional(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("api_keys: sk-one-0001, sk-two-0002\n", encoding="utf-8")

        loaded = ConfigFileLoader.from_file(path)

        assert loaded.api_keys == ["sk-one-0001", "sk-two-0002"]
        assert loaded.config.base_url == "https://api.openai.com"
        assert loaded.config.logging is None

    def test_invalid_syntax(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("fallback_client: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="Invalid YAML"):
            ConfigFileLoader.from_yaml(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="Empty config"):
            ConfigFileLoader.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigFileLoader.from_yaml(tmp_path / "nope.yaml")


class TestJson:
    """Загрузка JSON."""

    def test_json_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "base_url": "http://localhost:9000",
            "api_keys": ["sk-json-key-0001"],
            "verify_ssl": False,
        }), encoding="utf-8")

        loaded = ConfigFileLoader.from_file(path)

        assert loaded.config.base_url == "http://localhost:9000"
        assert loaded.config.verify_ssl is False
        assert loaded.api_keys == ["sk-json-key-0001"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigValidationError, match="Invalid JSON"):
            ConfigFileLoader.from_json(path)


class TestValidation:
    """Ошибки валидации."""

    def _load(self, tmp_path, data):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return ConfigFileLoader.from_json(path)

    def test_unknown_retry_option(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Unknown retry options"):
            self._load(tmp_path, {"retry": {"max_attempts": 2, "jitter": True}})

    def test_bad_retry_value(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Invalid config"):
            self._load(tmp_path, {"retry": {"max_attempts": -1}})

    def test_bad_base_url(self, tmp_path):
        with pytest.raises(ConfigValidationError):
            self._load(tmp_path, {"base_url": "ftp://example.com"})

    def test_section_must_be_dict(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="timeout must be a dictionary"):
            self._load(tmp_path, {"timeout": 30})

    def test_api_keys_must_be_strings(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="api_keys"):
            self._load(tmp_path, {"api_keys": [1, 2]})

    def test_is_configuration_error(self):
        assert issubclass(ConfigValidationError, ConfigurationError)


class TestFromFile:
    """Автоопределение формата и путь из окружения."""

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigFileLoader.from_file(tmp_path / "config.toml")

    def test_from_env_path_unset(self, monkeypatch):
        monkeypatch.delenv(CONFIG_FILE_ENV_VAR, raising=False)
        assert ConfigFileLoader.from_env_path() is None

    def test_from_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(YAML_CONFIG, encoding="utf-8")
        monkeypatch.setenv(CONFIG_FILE_ENV_VAR, str(path))

        loaded = ConfigFileLoader.from_env_path()

        assert loaded.config.base_url == "https://proxy.example.com/openai"
