"""Runtime - retry scopes, retriable blocks and their observability."""

from __future__ import annotations

__all__ = [
    # Retry
    "Strategy", "ConstantStrategy", "ProgressiveStrategy",
    "RetryPolicy", "RetryContext", "retry_scope", "retry", "current_contexts", "find_context",
    "default_log_fn", "structured_log_fn",
    "retriable", "run_retriable", "attempt_retriable", "arun_retriable", "aattempt_retriable",
    # Observability
    "configure_logging", "get_logger", "log_context",
]

from .observability import configure_logging, get_logger, log_context
from .retry import (
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
