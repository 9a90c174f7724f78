"""
Profile management for different environments.
"""

from typing import Optional, Literal
import os

ProfileType = Literal["development", "staging", "production"]

PROFILE_ENV_VAR = "FALLBACK_CLIENT_ENV"

_PROFILE_ALIASES = {
    "dev": "development",
    "development": "development",
    "stage": "staging",
    "staging": "staging",
    "prod": "production",
    "production": "production",
}


def normalize_profile(profile: Optional[str]) -> Optional[ProfileType]:
    """
    Map a profile name or alias to its canonical name.

    Raises:
        ValueError: unknown profile

    Example:
        >>> normalize_profile("prod")
        'production'
    """
    if profile is None:
        return None
    canonical = _PROFILE_ALIASES.get(profile.strip().lower())
    if canonical is None:
        raise ValueError(
            f"Unknown profile: {profile}. "
            f"Available: development, staging, production"
        )
    return canonical  # type: ignore[return-value]


def detect_profile() -> Optional[ProfileType]:
    """Profile from FALLBACK_CLIENT_ENV, or None."""
    value = os.getenv(PROFILE_ENV_VAR)
    if not value:
        return None
    return normalize_profile(value)


def get_env_file_path(profile: Optional[str] = None) -> str:
    """
    .env file path for a profile.

    Example:
        >>> get_env_file_path("production")
        '.env.production'
        >>> get_env_file_path(None)  # FALLBACK_CLIENT_ENV unset
        '.env'
    """
    resolved = normalize_profile(profile) if profile is not None else detect_profile()
    if resolved is None:
        return ".env"
    return f".env.{resolved}"
