"""Foundation - error types, outcomes and configuration shared by the runtime."""

from __future__ import annotations

from .config import LoggingSettings, RetrySettings, StandfastSettings, clear_settings_cache, get_settings
from .errors import (
    Err,
    ErrorToken,
    Exhausted,
    Ok,
    Result,
    RetriableError,
    RetryFailure,
    StandfastError,
    Unhandled,
    describe_failure,
    original_failure,
)

__all__ = [
    # Errors
    "ErrorToken", "StandfastError", "RetriableError", "describe_failure", "original_failure",
    "Exhausted", "Unhandled", "RetryFailure", "Result", "Ok", "Err",
    # Config
    "StandfastSettings", "RetrySettings", "LoggingSettings", "get_settings", "clear_settings_cache",
]
