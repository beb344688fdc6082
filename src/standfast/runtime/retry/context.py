"""Retry scopes: the handle site of the retry protocol.

Application code opens a retry scope to say how failures raised by
retriable code underneath it should be retried. Scopes nest; the active
ones form a stack, innermost first, kept in a ContextVar so every thread
and asyncio task sees only the scopes it opened itself.

Example:
    >>> with retry_scope(strategy=ConstantStrategy(1000, max_count=5), selector="s3"):
    ...     with retry_scope(strategy=ProgressiveStrategy(), selector="db"):
    ...         sync_everything()   # s3-tagged failures use the outer policy
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Hashable
from contextvars import ContextVar, Token
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import wraps
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from standfast.foundation.config import get_settings
from standfast.foundation.errors import ErrorToken, describe_failure, original_failure
from standfast.runtime.observability import BoundLogger, get_logger

from .backoff import ProgressiveStrategy, Strategy

if TYPE_CHECKING:
    from types import TracebackType

P = ParamSpec("P")
T = TypeVar("T")

Selector = Callable[[BaseException], bool]
LogFn = Callable[[BaseException, float], None]

_log = get_logger("standfast.retry")

_contexts: ContextVar[tuple[RetryContext, ...]] = ContextVar("standfast_retry_contexts", default=())
# Reset tokens of the scopes entered in this context, innermost last
_entries: ContextVar[tuple[Token[tuple[RetryContext, ...]], ...]] = ContextVar("standfast_retry_entries", default=())

_UNSET: Any = object()


# ─────────────────────────────────────────────────────────────────────────────
# Log functions
# ─────────────────────────────────────────────────────────────────────────────


def _seconds(delay: float) -> Decimal:
    """Milliseconds as seconds, one decimal place, halves rounded up (250 -> 0.3)."""
    return (Decimal(str(delay)) / 1000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def default_log_fn(wrapped: BaseException, delay: float) -> None:
    """Print ``"<failure>, retrying in <seconds> seconds..."`` to stdout."""
    print(f"{describe_failure(original_failure(wrapped))}, retrying in {_seconds(delay)} seconds...")


def structured_log_fn(logger: BoundLogger | None = None) -> LogFn:
    """Log function that emits a structured ``retrying`` warning instead of printing."""
    log = logger or _log

    def log_retry(wrapped: BaseException, delay: float) -> None:
        token = getattr(wrapped, "token", None)
        log.warning(
            "retrying",
            error=describe_failure(original_failure(wrapped)),
            tag=getattr(wrapped, "tag", None),
            token=token.id if isinstance(token, ErrorToken) else None,
            delay_ms=delay,
        )

    return log_retry


# ─────────────────────────────────────────────────────────────────────────────
# Policy & Context
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TagSelector:
    """Selector matching wrapped failures whose ``tag`` equals a label."""

    tag: Hashable

    def __call__(self, wrapped: BaseException) -> bool:
        return getattr(wrapped, "tag", None) == self.tag


def _default_strategy() -> Strategy:
    return ProgressiveStrategy.from_settings(get_settings().retry)


class RetryPolicy(BaseModel):
    """What a retry scope does with the failures it accepts.

    Attributes:
        strategy: Attempt number → delay in ms, or None to stop
            (default: ProgressiveStrategy from STANDFAST_RETRY_* settings)
        selector: None (accept everything), a predicate over the wrapped
            failure, or a label compared against the failure's tag
        log_fn: Called with (wrapped failure, delay) before each wait

    Example:
        >>> policy = RetryPolicy(strategy=ConstantStrategy(200, max_count=3), selector="network")
        >>> with retry_scope(policy):
        ...     ...
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Strategy protocol
        extra="forbid",
        revalidate_instances="never",
    )

    strategy: Strategy = Field(default_factory=_default_strategy)
    selector: Selector | None = None
    log_fn: LogFn = default_log_fn

    @field_validator("selector", mode="before")
    @classmethod
    def _label_to_predicate(cls, v: object) -> object:
        """Labels become tag-equality predicates; callables pass through."""
        return v if v is None or callable(v) else TagSelector(v)


class RetryContext:
    """One active retry scope: its policy plus per-loop strategy handles.

    ``strategies`` maps the ErrorToken of each retriable loop that reached
    this context to the strategy handle it uses, so repeated attempts of the
    same loop keep one handle. Owned by the scope that pushed it.
    """

    __slots__ = ("strategy", "selector", "log_fn", "strategies")

    def __init__(self, strategy: Strategy, selector: Selector | None = None, log_fn: LogFn = default_log_fn) -> None:
        self.strategy, self.selector, self.log_fn = strategy, selector, log_fn
        self.strategies: dict[ErrorToken, Strategy] = {}

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> RetryContext:
        return cls(policy.strategy, policy.selector, policy.log_fn)

    def matches(self, wrapped: BaseException) -> bool:
        return self.selector is None or bool(self.selector(wrapped))

    def strategy_for(self, token: ErrorToken) -> Strategy:
        """Strategy handle for a loop, cached on first use."""
        if (strategy := self.strategies.get(token)) is None:
            strategy = self.strategies[token] = self.strategy
        return strategy

    def release(self, token: ErrorToken) -> None:
        """Forget the handle of a loop that has finished."""
        self.strategies.pop(token, None)

    def __repr__(self) -> str:
        return f"RetryContext(strategy={self.strategy!r}, selector={self.selector!r}, loops={len(self.strategies)})"


# ─────────────────────────────────────────────────────────────────────────────
# Stack
# ─────────────────────────────────────────────────────────────────────────────


def current_contexts() -> tuple[RetryContext, ...]:
    """Active retry contexts of this thread/task, innermost first."""
    return _contexts.get()


def find_context(wrapped: BaseException, contexts: tuple[RetryContext, ...] | None = None) -> RetryContext | None:
    """First context, innermost first, whose selector accepts the wrapped failure."""
    return next((ctx for ctx in (current_contexts() if contexts is None else contexts) if ctx.matches(wrapped)), None)


class retry_scope:
    """Establish a retry policy for the dynamic extent of a block.

    Usable as a context manager or as a decorator on sync and async
    functions. On exit, by return or by exception, the stack is restored to
    exactly what it was on entry. One scope object may be entered by many
    threads or tasks at once; each entry is undone in its own context.

    Keyword overrides replace the matching policy field, ``None`` included,
    so ``retry_scope(policy, selector=None)`` accepts every failure.

    Example:
        >>> with retry_scope(strategy=ConstantStrategy(500), selector="mirror"):
        ...     download_all()

        >>> @retry_scope(selector=lambda wf: isinstance(wf.error, TimeoutError))
        ... def nightly_sync() -> None:
        ...     ...
    """

    __slots__ = ("policy",)

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        strategy: Strategy = _UNSET,
        selector: Selector | Hashable | None = _UNSET,
        log_fn: LogFn = _UNSET,
    ) -> None:
        overrides: dict[str, Any] = {k: v for k, v in
                                     (("strategy", strategy), ("selector", selector), ("log_fn", log_fn)) if v is not _UNSET}
        if policy is None:
            policy = RetryPolicy(**overrides)
        elif overrides:
            policy = RetryPolicy(**{"strategy": policy.strategy, "selector": policy.selector,
                                    "log_fn": policy.log_fn, **overrides})
        self.policy = policy

    def __enter__(self) -> RetryContext:
        ctx = RetryContext.from_policy(self.policy)
        stack = _contexts.get()
        _entries.set((*_entries.get(), _contexts.set((ctx, *stack))))
        _log.debug("retry scope entered", depth=len(stack) + 1, selector=repr(ctx.selector))
        return ctx

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        *outer, token = _entries.get()
        _entries.set(tuple(outer))
        _contexts.reset(token)
        _log.debug("retry scope exited", depth=len(_contexts.get()),
                   error=exc_type.__name__ if exc_type else None)

    def __call__(self, func: Callable[P, T]) -> Callable[P, T]:
        policy = self.policy

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with retry_scope(policy):
                return func(*args, **kwargs)

        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with retry_scope(policy):
                return await func(*args, **kwargs)  # type: ignore[misc]

        return async_wrapper if inspect.iscoroutinefunction(func) else wrapper  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"retry_scope({self.policy!r})"


def retry(
    body: Callable[[], T],
    policy: RetryPolicy | None = None,
    *,
    strategy: Strategy = _UNSET,
    selector: Selector | Hashable | None = _UNSET,
    log_fn: LogFn = _UNSET,
) -> T:
    """Run ``body`` inside a retry scope and return its result."""
    with retry_scope(policy, strategy=strategy, selector=selector, log_fn=log_fn):
        return body()

