"""Decoupled retries: retriable blocks ask enclosing retry scopes for a policy.

Low-level code marks operations as retriable without choosing a policy;
high-level code opens retry scopes that decide whether, how often and with
what delay a retriable failure is retried.

Example:
    >>> from standfast.runtime.retry import retriable, retry_scope, ConstantStrategy
    >>>
    >>> @retriable(tag="mirror")
    ... def fetch_index() -> bytes:
    ...     return mirror.read("index.json")      # may raise OSError
    >>>
    >>> with retry_scope(strategy=ConstantStrategy(1000, max_count=5), selector="mirror"):
    ...     index = fetch_index()
"""

from .backoff import ConstantStrategy, Delay, ProgressiveStrategy, Strategy
from .context import (
    RetryContext,
    RetryPolicy,
    TagSelector,
    current_contexts,
    default_log_fn,
    find_context,
    retry,
    retry_scope,
    structured_log_fn,
)
from .block import (
    DEFAULT_CATCH,
    aattempt_retriable,
    arun_retriable,
    attempt_retriable,
    raise_failure,
    retriable,
    run_retriable,
)

__all__ = [
    # Backoff strategies
    "Strategy",
    "Delay",
    "ConstantStrategy",
    "ProgressiveStrategy",
    # Handle site
    "RetryPolicy",
    "RetryContext",
    "TagSelector",
    "retry_scope",
    "retry",
    "current_contexts",
    "find_context",
    "default_log_fn",
    "structured_log_fn",
    # Raise site
    "DEFAULT_CATCH",
    "retriable",
    "run_retriable",
    "attempt_retriable",
    "arun_retriable",
    "aattempt_retriable",
    "raise_failure",
]
