"""Environment-based configuration using pydantic-settings.

Provides defaults for the progressive backoff strategy and for the
package's own structured logging. Supports .env files and nested
configuration.

Example:
    >>> from standfast.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.initial_delay
    500.0
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # STANDFAST_RETRY_INITIAL_DELAY=1000
    # STANDFAST_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, PositiveFloat, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Defaults for the progressive strategy used when a retry scope names none.

    Delays are milliseconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="STANDFAST_RETRY_",
        extra="ignore",
    )

    initial_delay: NonNegativeFloat = Field(default=500.0, description="Delay for the first stable_length attempts")
    stable_length: NonNegativeInt = Field(default=3, description="Attempts that keep the initial delay")
    multiplier: PositiveFloat = Field(default=2.0, description="Growth factor after the stable phase")
    max_delay: NonNegativeFloat = Field(default=60000.0, description="Upper bound for any delay")
    max_count: Annotated[int, Field(ge=0)] | None = Field(default=None, description="Stop after this many attempts")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STANDFAST_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"
    colors: bool | None = None


class StandfastSettings(BaseSettings):
    """Root settings for standfast.

    Loads configuration from environment variables with the STANDFAST_ prefix.

    Example environment variables:
        STANDFAST_RETRY_MAX_COUNT=5
        STANDFAST_RETRY_MULTIPLIER=3
        STANDFAST_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="STANDFAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug logging of scope entry/exit")

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def log_level(self) -> str:
        """Effective log level: debug mode forces DEBUG."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> StandfastSettings:
    """Get the global settings instance (cached)."""
    return StandfastSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    The next get_settings() call reloads configuration from the environment.
    """
    get_settings.cache_clear()
