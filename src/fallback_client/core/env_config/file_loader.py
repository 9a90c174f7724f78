"""
Configuration file loader for YAML and JSON files.

Example config.yaml:

    fallback_client:
      base_url: https://api.openai.com
      api_keys:
        - sk-first-key
        - sk-second-key
      timeout:
        connect: 10
        read: 600
      retry:
        max_attempts: 10
        base_delay: 0.01
        backoff_factor: 2
        max_delay: 0.1
      logging:
        level: INFO
        format: json
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Union

import yaml

from ..config import ClientConfig, RetryPolicy, TimeoutConfig, DEFAULT_BASE_URL
from ..exceptions import ConfigurationError
from ..logging import LoggingConfig

CONFIG_FILE_ENV_VAR = "FALLBACK_CLIENT_CONFIG_FILE"


class ConfigValidationError(ConfigurationError):
    """Raised when configuration file is invalid."""

    pass


class LoadedConfig(NamedTuple):
    """Client config plus the API keys it was loaded with."""
    config: ClientConfig
    api_keys: List[str]


class ConfigFileLoader:
    """
    Загрузчик конфигурации из файлов.

    Examples:
        >>> loaded = ConfigFileLoader.from_yaml("config.yaml")
        >>> loaded = ConfigFileLoader.from_file("config.json")  # Auto-detect
        >>> loaded = ConfigFileLoader.from_env_path()  # From FALLBACK_CLIENT_CONFIG_FILE
    """

    @staticmethod
    def from_yaml(path: Union[str, Path]) -> LoadedConfig:
        """
        Загрузить конфиг из YAML файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML syntax in {path}: {e}")

        if not data:
            raise ConfigValidationError(f"Empty config file: {path}")

        return ConfigFileLoader._build_config(data, str(path))

    @staticmethod
    def from_json(path: Union[str, Path]) -> LoadedConfig:
        """
        Загрузить конфиг из JSON файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid JSON syntax in {path}: {e}")

        if not data:
            raise ConfigValidationError(f"Empty config file: {path}")

        return ConfigFileLoader._build_config(data, str(path))

    @staticmethod
    def from_file(path: Union[str, Path]) -> LoadedConfig:
        """
        Автоопределение формата по расширению (.yaml, .yml, .json).

        Raises:
            ValueError: Если формат не поддерживается
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            return ConfigFileLoader.from_yaml(path)
        if suffix == ".json":
            return ConfigFileLoader.from_json(path)

        raise ValueError(
            f"Unsupported config file format: {suffix}. "
            f"Supported formats: .yaml, .yml, .json"
        )

    @staticmethod
    def from_env_path() -> Optional[LoadedConfig]:
        """Загрузить из пути в FALLBACK_CLIENT_CONFIG_FILE, None если переменная не задана."""
        config_path = os.environ.get(CONFIG_FILE_ENV_VAR)
        if not config_path:
            return None
        return ConfigFileLoader.from_file(config_path)

    @staticmethod
    def _section(config_data: Dict[str, Any], name: str, source: str) -> Optional[Dict[str, Any]]:
        if name not in config_data:
            return None
        section = config_data[name]
        if not isinstance(section, dict):
            raise ConfigValidationError(f"{name} must be a dictionary in {source}")
        return section

    @staticmethod
    def _build_config(data: Dict[str, Any], source: str) -> LoadedConfig:
        """
        Build config and key list from parsed data.

        Raises:
            ConfigValidationError: If config is invalid
        """
        config_data = data.get("fallback_client", data) if isinstance(data, dict) else data

        if not isinstance(config_data, dict):
            raise ConfigValidationError(
                f"Config must be a dictionary, got {type(config_data).__name__} in {source}"
            )

        api_keys = config_data.get("api_keys", [])
        if isinstance(api_keys, str):
            api_keys = [key.strip() for key in api_keys.split(",")]
        if not isinstance(api_keys, list) or not all(isinstance(k, str) for k in api_keys):
            raise ConfigValidationError(f"api_keys must be a list of strings in {source}")

        try:
            timeout_cfg = TimeoutConfig()
            timeout_data = ConfigFileLoader._section(config_data, "timeout", source)
            if timeout_data is not None:
                timeout_cfg = TimeoutConfig(
                    connect=timeout_data.get("connect", timeout_cfg.connect),
                    read=timeout_data.get("read", timeout_cfg.read),
                    total=timeout_data.get("total"),
                )

            retry_cfg = RetryPolicy()
            retry_data = ConfigFileLoader._section(config_data, "retry", source)
            if retry_data is not None:
                allowed = {"max_attempts", "base_delay", "backoff_factor", "max_delay"}
                unknown = set(retry_data) - allowed
                if unknown:
                    raise ConfigValidationError(
                        f"Unknown retry options {sorted(unknown)} in {source}"
                    )
                retry_cfg = RetryPolicy(**retry_data)

            logging_cfg = None
            logging_data = ConfigFileLoader._section(config_data, "logging", source)
            if logging_data is not None:
                logging_cfg = LoggingConfig.create(
                    level=logging_data.get("level", "INFO"),
                    format=logging_data.get("format", "text"),
                    enable_console=logging_data.get("enable_console", True),
                    enable_file=logging_data.get("enable_file", False),
                    file_path=logging_data.get("file_path"),
                    enable_correlation_id=logging_data.get("enable_correlation_id", True),
                    extra_fields=logging_data.get("extra_fields"),
                )

            headers = config_data.get("headers", {})
            if not isinstance(headers, dict):
                raise ConfigValidationError(f"headers must be a dictionary in {source}")

            config = ClientConfig(
                base_url=config_data.get("base_url", DEFAULT_BASE_URL),
                headers={str(k): str(v) for k, v in headers.items()},
                timeout=timeout_cfg,
                retry=retry_cfg,
                verify_ssl=config_data.get("verify_ssl", True),
                logging=logging_cfg,
            )

        except (ValueError, TypeError) as e:
            raise ConfigValidationError(f"Invalid config in {source}: {e}")

        return LoadedConfig(config=config, api_keys=[k.strip() for k in api_keys if k.strip()])
