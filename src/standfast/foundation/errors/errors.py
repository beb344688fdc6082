"""Failure types shared by the raise site and the handle site.

- ErrorToken: identity of one active retriable loop
- RetriableError: the wrapped failure seen by selectors and log functions
- Exhausted / Unhandled: the two ways a retriable loop can end without a value
"""

from __future__ import annotations

import itertools
from collections.abc import Hashable
from dataclasses import dataclass, field

_token_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class ErrorToken:
    """Handle for one entry into a retriable block.

    Created once when the loop starts and threaded through every attempt, so
    a retry context can keep one strategy handle per loop. Ids come from a
    process-wide counter and are never reused.
    """

    id: int = field(default_factory=lambda: next(_token_ids))

    def __repr__(self) -> str:
        return f"ErrorToken({self.id})"


class StandfastError(Exception):
    """Base class for errors raised by standfast itself."""


class RetriableError(StandfastError):
    """A caught failure wrapped with its tag and loop token.

    Selectors and log functions receive this object. It is raised only when
    a matching retry policy gives up; the original failure is chained as
    ``__cause__`` at that point.

    Attributes:
        error: The original exception raised by the retriable body
        tag: Optional label attached by the retriable block
        token: ErrorToken of the loop that caught the failure
    """

    def __init__(self, error: BaseException, tag: Hashable | None = None, token: ErrorToken | None = None) -> None:
        super().__init__("Retriable code failed.")
        self.error, self.tag, self.token = error, tag, token

    def __repr__(self) -> str:
        return f"RetriableError(error={self.error!r}, tag={self.tag!r}, token={self.token!r})"


@dataclass(frozen=True, slots=True)
class Exhausted:
    """A retry policy matched the failure and its strategy said stop."""

    wrapped: BaseException
    error: BaseException


@dataclass(frozen=True, slots=True)
class Unhandled:
    """No active retry context accepted the failure."""

    error: BaseException


RetryFailure = Exhausted | Unhandled


def describe_failure(exc: BaseException) -> str:
    """Human-readable one-liner: ``"OSError: disk on fire"``."""
    name = type(exc).__name__
    return f"{name}: {exc}" if str(exc) else name


def original_failure(wrapped: BaseException) -> BaseException:
    """Original exception carried by a wrapped failure, or the failure itself for custom wrappers."""
    inner = getattr(wrapped, "error", None)
    return inner if isinstance(inner, BaseException) else wrapped
