"""
Configuration loader from environment variables and .env files.
"""

from typing import Optional

from ..config import ClientConfig, RetryPolicy, TimeoutConfig
from ..logging.config import LoggingConfig, LogLevel, LogFormat
from ..utils import mask_api_key
from .file_loader import LoadedConfig
from .profiles import ProfileType, get_env_file_path
from .validator import FallbackClientSettings, RetrySettings


def load_from_env(
    profile: Optional[ProfileType] = None,
    env_file: Optional[str] = None,
    **overrides
) -> LoadedConfig:
    """
    Load client config and API keys from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters
    2. Environment variables (FALLBACK_CLIENT_*)
    3. .env file (profile-specific or default)
    4. Defaults

    Args:
        profile: Profile to load (development/staging/production)
        env_file: Custom .env file path (overrides profile)
        **overrides: Explicit overrides, named like the settings fields
            (base_url, api_keys, retry_max_attempts, log_level, ...)

    Returns:
        LoadedConfig(config, api_keys)

    Example:
        >>> loaded = load_from_env(profile="production", retry_max_attempts=3)
        >>> client = FallbackClient(loaded.api_keys, config=loaded.config)
    """
    if env_file is None:
        env_file = get_env_file_path(profile)

    settings = FallbackClientSettings(_env_file=env_file)

    def pick(name: str):
        return overrides.get(name, getattr(settings, name))

    timeout = TimeoutConfig(
        connect=pick('timeout_connect'),
        read=pick('timeout_read'),
        total=pick('timeout_total'),
    )

    # Overrides go through the same validation as env values
    retry_settings = RetrySettings(
        max_attempts=pick('retry_max_attempts'),
        base_delay=pick('retry_base_delay'),
        backoff_factor=pick('retry_backoff_factor'),
        max_delay=pick('retry_max_delay'),
    )
    retry = RetryPolicy(**retry_settings.model_dump())

    logging_config = None
    logging_settings = settings.to_logging_settings()
    if logging_settings:
        logging_config = LoggingConfig(
            level=LogLevel(str(overrides.get('log_level', logging_settings.level)).upper()),
            format=LogFormat(str(overrides.get('log_format', logging_settings.format)).lower()),
            enable_console=overrides.get('log_enable_console', logging_settings.enable_console),
            enable_file=overrides.get('log_enable_file', logging_settings.enable_file),
            file_path=overrides.get('log_file_path', logging_settings.file_path),
            max_bytes=overrides.get('log_max_bytes', logging_settings.max_bytes),
            backup_count=overrides.get('log_backup_count', logging_settings.backup_count),
            enable_correlation_id=overrides.get('log_enable_correlation_id', logging_settings.enable_correlation_id),
        )

    config = ClientConfig(
        base_url=pick('base_url'),
        timeout=timeout,
        retry=retry,
        verify_ssl=pick('verify_ssl'),
        logging=logging_config,
    )

    api_keys = overrides.get('api_keys')
    if api_keys is None:
        api_keys = settings.key_list()
    elif isinstance(api_keys, str):
        api_keys = [key.strip() for key in api_keys.split(',') if key.strip()]

    return LoadedConfig(config=config, api_keys=list(api_keys))


def print_config_summary(loaded: LoadedConfig) -> None:
    """
    Print configuration summary with masked keys.

    Example:
        >>> print_config_summary(load_from_env())
        ClientConfig:
          base_url: https://api.openai.com
          api_keys: sk-a...1234, sk-b...5678
          ...
    """
    config = loaded.config
    print("ClientConfig:")
    print(f"  base_url: {config.base_url}")
    print(f"  api_keys: {', '.join(mask_api_key(k) for k in loaded.api_keys) or '(none)'}")
    print(f"  timeout: connect={config.timeout.connect}s, read={config.timeout.read}s, total={config.timeout.total}s")
    print(
        f"  retry: max_attempts={config.retry.max_attempts}, base_delay={config.retry.base_delay}s, "
        f"factor={config.retry.backoff_factor}, max_delay={config.retry.max_delay}s"
    )
    print(f"  verify_ssl: {config.verify_ssl}")

    if config.logging:
        print(f"  logging: level={config.logging.level.value}, format={config.logging.format.value}")
        if config.logging.enable_file:
            print(f"    file: {config.logging.file_path}")
