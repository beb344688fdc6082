"""Configuration management using pydantic-settings."""

from .settings import (
    LoggingSettings,
    RetrySettings,
    StandfastSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "LoggingSettings",
    "RetrySettings",
    "StandfastSettings",
    "clear_settings_cache",
    "get_settings",
]
