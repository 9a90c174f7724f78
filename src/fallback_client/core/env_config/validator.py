"""
Pydantic models for environment configuration.
"""

from typing import List, Optional, Literal
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseModel):
    """Transport retry policy from environment."""

    max_attempts: int = Field(default=10, ge=0, le=50, description="Retries per key after the first attempt")
    base_delay: float = Field(default=0.010, ge=0, description="Base backoff delay in seconds")
    backoff_factor: float = Field(default=2.0, ge=1.0, description="Exponential backoff factor")
    max_delay: float = Field(default=0.100, ge=0, description="Backoff ceiling in seconds")


class LoggingSettings(BaseModel):
    """Logging configuration from environment."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    format: Literal["json", "text", "colored"] = Field(default="text")
    enable_console: bool = Field(default=True)
    enable_file: bool = Field(default=False)
    file_path: Optional[str] = None
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=5, ge=0)
    enable_correlation_id: bool = Field(default=True)

    @field_validator('file_path')
    @classmethod
    def validate_file_path(cls, v: Optional[str], info) -> Optional[str]:
        """file_path is required when enable_file=True."""
        if info.data.get('enable_file') and not v:
            raise ValueError("file_path is required when enable_file=True")
        return v


class FallbackClientSettings(BaseSettings):
    """
    Fallback client configuration from environment variables.

    Reads from:
    1. Environment variables (FALLBACK_CLIENT_*)
    2. .env file
    3. Defaults

    Example .env file:
        FALLBACK_CLIENT_BASE_URL=https://api.openai.com
        FALLBACK_CLIENT_API_KEYS=sk-first-key,sk-second-key
        FALLBACK_CLIENT_TIMEOUT_READ=600
        FALLBACK_CLIENT_RETRY_MAX_ATTEMPTS=10
        FALLBACK_CLIENT_LOG_LEVEL=INFO
    """

    model_config = SettingsConfigDict(
        env_prefix='FALLBACK_CLIENT_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="https://api.openai.com", description="Upstream API base URL")

    # Comma-separated; kept as a string so pydantic-settings does not try JSON
    api_keys: str = Field(default="", description="Comma-separated API keys")

    timeout_connect: float = Field(default=10.0, gt=0)
    timeout_read: float = Field(default=600.0, gt=0)
    timeout_total: Optional[float] = Field(default=None, gt=0)

    retry_max_attempts: int = Field(default=10, ge=0, le=50)
    retry_base_delay: float = Field(default=0.010, ge=0)
    retry_backoff_factor: float = Field(default=2.0, ge=1.0)
    retry_max_delay: float = Field(default=0.100, ge=0)

    verify_ssl: bool = Field(default=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_enable_console: bool = Field(default=True)
    log_enable_file: bool = Field(default=False)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = Field(default=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_format', mode='before')
    @classmethod
    def normalize_log_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://: {v}")
        return v

    def key_list(self) -> List[str]:
        """API keys split on commas, blanks dropped."""
        return [key.strip() for key in self.api_keys.split(',') if key.strip()]

    def to_logging_settings(self) -> Optional[LoggingSettings]:
        """LoggingSettings, or None when both console and file are off."""
        if not self.log_enable_file and not self.log_enable_console:
            return None

        return LoggingSettings(
            level=self.log_level,
            format=self.log_format,
            enable_console=self.log_enable_console,
            enable_file=self.log_enable_file,
            file_path=self.log_file_path,
            max_bytes=self.log_max_bytes,
            backup_count=self.log_backup_count,
            enable_correlation_id=self.log_enable_correlation_id,
        )
