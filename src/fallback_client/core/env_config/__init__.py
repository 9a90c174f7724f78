"""
Environment configuration for the fallback client.

Example:
    >>> from fallback_client.core.env_config import load_from_env
    >>>
    >>> loaded = load_from_env()                      # .env
    >>> loaded = load_from_env(profile="production")  # .env.production
    >>> loaded = load_from_env(api_keys="sk-1...,sk-2...")
"""

from .loader import load_from_env, print_config_summary
from .validator import FallbackClientSettings, RetrySettings, LoggingSettings
from .profiles import ProfileType, detect_profile, get_env_file_path, normalize_profile
from .file_loader import ConfigFileLoader, ConfigValidationError, LoadedConfig

__all__ = [
    # Loaders
    "load_from_env",
    "print_config_summary",
    "ConfigFileLoader",
    "ConfigValidationError",
    "LoadedConfig",
    # Validators
    "FallbackClientSettings",
    "RetrySettings",
    "LoggingSettings",
    # Profiles
    "ProfileType",
    "detect_profile",
    "get_env_file_path",
    "normalize_profile",
]
