"""standfast - retries decided by the caller, declared by the callee.

Library code marks operations as retriable for the failure kinds it knows
are survivable. Application code, which alone knows what waiting costs,
opens retry scopes that choose the backoff policy. Scopes nest and route
failures by tag, so one call tree can retry network errors patiently and
give up on a flaky cache quickly.

Raise site:
    >>> from standfast import retriable
    >>>
    >>> @retriable(catch=(ConnectionError, TimeoutError), tag="api")
    ... def fetch_profile(user_id: int) -> dict:
    ...     return client.get(f"/users/{user_id}")

Handle site:
    >>> from standfast import retry_scope, ProgressiveStrategy
    >>>
    >>> with retry_scope(strategy=ProgressiveStrategy(max_count=8), selector="api"):
    ...     profile = fetch_profile(42)
    ConnectionError: reset by peer, retrying in 0.5 seconds...

Without an enclosing scope a retriable failure propagates unchanged. When a
strategy runs out, RetriableError is raised with the original failure as
its cause.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Config
from .foundation.config import (
    LoggingSettings,
    RetrySettings,
    StandfastSettings,
    clear_settings_cache,
    get_settings,
)

# Errors & outcomes
from .foundation.errors import (
    Err,
    ErrorToken,
    Exhausted,
    Ok,
    Result,
    RetriableError,
    StandfastError,
    Unhandled,
)

# Observability
from .runtime.observability import configure_logging, get_logger, log_context

# Retry
from .runtime.retry import (
    ConstantStrategy,
    ProgressiveStrategy,
    RetryContext,
    RetryPolicy,
    Strategy,
    aattempt_retriable,
    arun_retriable,
    attempt_retriable,
    current_contexts,
    default_log_fn,
    find_context,
    retriable,
    retry,
    retry_scope,
    run_retriable,
    structured_log_fn,
)

__all__ = [
    "__version__",
    # Backoff strategies
    "Strategy", "ConstantStrategy", "ProgressiveStrategy",
    # Handle site
    "RetryPolicy", "RetryContext", "retry_scope", "retry", "current_contexts", "find_context",
    "default_log_fn", "structured_log_fn",
    # Raise site
    "retriable", "run_retriable", "attempt_retriable", "arun_retriable", "aattempt_retriable",
    # Errors & outcomes
    "ErrorToken", "StandfastError", "RetriableError", "Exhausted", "Unhandled", "Result", "Ok", "Err",
    # Config
    "StandfastSettings", "RetrySettings", "LoggingSettings", "get_settings", "clear_settings_cache",
    # Observability
    "configure_logging", "get_logger", "log_context",
]
