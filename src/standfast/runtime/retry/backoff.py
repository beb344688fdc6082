"""Backoff strategies for retry scopes.

A strategy maps an attempt number (1 for the first execution) to a delay in
milliseconds, or to None meaning "stop retrying" (False stops too). Any
callable with that shape is a strategy:

    >>> with retry_scope(strategy=lambda attempt: 250 if attempt <= 5 else None):
    ...     ...

Built-ins:
- ConstantStrategy: Fixed delay, optionally bounded by a max count
- ProgressiveStrategy: Stable phase, then exponential growth up to a cap
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from standfast.foundation.config import RetrySettings

Delay = float | int | None


@runtime_checkable
class Strategy(Protocol):
    """Protocol for delay calculation.

    Must be a pure function of ``attempt``: per-loop state lives in the retry
    context that caches the strategy, not in the strategy.
    """

    def __call__(self, attempt: int) -> Delay:
        """Delay in milliseconds before the next attempt, or None (or False) to stop.

        Args:
            attempt: 1-indexed number of the attempt that just failed
        """
        ...


def _exceeded(attempt: int, max_count: int | None) -> bool:
    return max_count is not None and attempt > max_count


@dataclass(frozen=True, slots=True)
class ConstantStrategy:
    """Same delay for every attempt.

    Attributes:
        delay: Delay in milliseconds
        max_count: Stop once attempt exceeds this (default: never stop)
    """

    delay: float
    max_count: int | None = None

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.max_count is not None and self.max_count < 0:
            raise ValueError(f"max_count must be >= 0, got {self.max_count}")

    def __call__(self, attempt: int) -> Delay:
        return None if _exceeded(attempt, self.max_count) else self.delay


@dataclass(frozen=True, slots=True)
class ProgressiveStrategy:
    """Stable delay for a few attempts, then exponential growth with a cap.

    Delay = initial_delay                                               if attempt <= stable_length
          = min(max_delay, initial_delay * int(multiplier ^ (attempt - stable_length)))   otherwise

    The power is truncated to an integer before scaling, so fractional
    multipliers grow in whole steps.

    Example (initial_delay=1000, stable_length=4, multiplier=2, max_delay=10000):
        attempts 1-4 → 1000, 5 → 2000, 6 → 4000, 7 → 8000, 8+ → 10000

    Attributes:
        initial_delay: Delay in milliseconds during the stable phase (default: 500)
        stable_length: Attempts that keep initial_delay (default: 3)
        multiplier: Growth factor after the stable phase (default: 2)
        max_delay: Upper bound in milliseconds (default: 60000)
        max_count: Stop once attempt exceeds this (default: never stop)
    """

    initial_delay: float = 500
    stable_length: int = 3
    multiplier: float = 2
    max_delay: float = 60000
    max_count: int | None = None

    def __post_init__(self) -> None:
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.stable_length < 0:
            raise ValueError(f"stable_length must be >= 0, got {self.stable_length}")
        if self.multiplier <= 0:
            raise ValueError(f"multiplier must be > 0, got {self.multiplier}")
        if self.max_count is not None and self.max_count < 0:
            raise ValueError(f"max_count must be >= 0, got {self.max_count}")

    def __call__(self, attempt: int) -> Delay:
        if _exceeded(attempt, self.max_count):
            return None
        if attempt <= self.stable_length:
            return self.initial_delay
        try:
            growth = int(self.multiplier ** (attempt - self.stable_length))
        except OverflowError:  # float multiplier after a very long run
            return self.max_delay
        return min(self.max_delay, self.initial_delay * growth)

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> ProgressiveStrategy:
        """Build from STANDFAST_RETRY_* settings."""
        return cls(
            initial_delay=settings.initial_delay,
            stable_length=settings.stable_length,
            multiplier=settings.multiplier,
            max_delay=settings.max_delay,
            max_count=settings.max_count,
        )
