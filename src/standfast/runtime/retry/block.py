"""Retriable blocks: the raise site of the retry protocol.

Library code marks an operation as retriable for some exception kinds and
optionally tags it. It does not decide whether to retry: on a matching
failure the loop asks the enclosing retry scopes (innermost first) for a
delay, and gives up when none is interested or the chosen strategy stops.

Three endings, reported explicitly by attempt_retriable():
- Ok(value): the body returned
- Err(Unhandled(original)): no scope accepted the failure
- Err(Exhausted(wrapped, original)): a scope accepted it, its strategy said stop

run_retriable() and the @retriable decorator turn those into a return value
or a raise: Unhandled re-raises the original exception unchanged, Exhausted
raises the wrapped failure chained from the original.

Example:
    >>> @retriable(catch=(ConnectionError, TimeoutError), tag="s3")
    ... def fetch(key: str) -> bytes:
    ...     return bucket.get(key)
    >>>
    >>> with retry_scope(strategy=ConstantStrategy(2000, max_count=10), selector="s3"):
    ...     fetch("reports/2024.csv")
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Hashable, Iterable
from functools import wraps
from typing import NoReturn, ParamSpec, TypeVar, overload

from standfast.foundation.errors import (
    Err,
    ErrorToken,
    Exhausted,
    Ok,
    Result,
    RetriableError,
    RetryFailure,
    Unhandled,
)
from standfast.runtime.observability import get_logger

from .context import RetryContext, find_context

P = ParamSpec("P")
T = TypeVar("T")

ExWrapper = Callable[[BaseException], BaseException]
Catch = type[BaseException] | Iterable[type[BaseException]]

DEFAULT_CATCH: tuple[type[BaseException], ...] = (OSError,)

_log = get_logger("standfast.retry.block")


def _normalize_catch(catch: Catch) -> tuple[type[BaseException], ...]:
    kinds = (catch,) if isinstance(catch, type) else tuple(catch)
    if not kinds:
        raise ValueError("catch must name at least one exception type")
    for kind in kinds:
        if not (isinstance(kind, type) and issubclass(kind, BaseException)):
            raise TypeError(f"catch entries must be exception types, got {kind!r}")
    return kinds


class _RetryLoop:
    """State of one retriable block entry: its token and the contexts it touched."""

    __slots__ = ("token", "tag", "ex_wrapper", "log", "_touched")

    def __init__(self, tag: Hashable | None, ex_wrapper: ExWrapper | None) -> None:
        self.token = ErrorToken()
        self.tag, self.ex_wrapper = tag, ex_wrapper
        self.log = _log.bind(tag=tag, token=self.token.id)
        self._touched: list[RetryContext] = []

    def wrap(self, exc: BaseException) -> BaseException:
        if self.ex_wrapper is None:
            return RetriableError(exc, self.tag, self.token)
        wrapped = self.ex_wrapper(exc)
        if not isinstance(wrapped, BaseException):
            raise TypeError(f"ex_wrapper must return an exception, got {type(wrapped).__name__}")
        return wrapped

    def handle(self, exc: BaseException, attempt: int) -> float | RetryFailure:
        """Delay in ms before the next attempt, or the failure that ends the loop."""
        wrapped = self.wrap(exc)
        if (ctx := find_context(wrapped)) is None:
            self.log.debug("no retry context matched", error=type(exc).__name__, attempt=attempt)
            return Unhandled(exc)
        if ctx not in self._touched:
            self._touched.append(ctx)
        if (delay := ctx.strategy_for(self.token)(attempt)) is None or delay is False:
            self.log.debug("retry strategy exhausted", error=type(exc).__name__, attempt=attempt)
            return Exhausted(wrapped, exc)
        ctx.log_fn(wrapped, delay)
        return delay

    def close(self) -> None:
        for ctx in self._touched:
            ctx.release(self.token)
        self._touched.clear()


def attempt_retriable(
    body: Callable[[], T],
    *,
    catch: Catch = DEFAULT_CATCH,
    tag: Hashable | None = None,
    ex_wrapper: ExWrapper | None = None,
) -> Result[T, RetryFailure]:
    """Run ``body`` until it returns or no retry is granted; never raises for ``catch`` kinds.

    Exceptions outside ``catch`` propagate immediately without consulting
    any retry scope. Waits block the calling thread.

    Args:
        body: Zero-argument callable, executed once per attempt
        catch: Exception type(s) that may be retried (default: OSError)
        tag: Label exposed to selectors as ``wrapped.tag``
        ex_wrapper: Builds the wrapped failure from the original; overrides tag

    Returns:
        Ok(result) | Err(Unhandled(original)) | Err(Exhausted(wrapped, original))
    """
    kinds = _normalize_catch(catch)
    loop = _RetryLoop(tag, ex_wrapper)
    attempt = 1
    try:
        while True:
            try:
                return Ok(body())
            except kinds as exc:
                step = loop.handle(exc, attempt)
            if isinstance(step, (Exhausted, Unhandled)):
                return Err(step)
            time.sleep(step / 1000.0)
            attempt += 1
    finally:
        loop.close()


async def aattempt_retriable(
    body: Callable[[], Awaitable[T]],
    *,
    catch: Catch = DEFAULT_CATCH,
    tag: Hashable | None = None,
    ex_wrapper: ExWrapper | None = None,
) -> Result[T, RetryFailure]:
    """Async attempt_retriable(): awaits ``body()`` and waits with asyncio.sleep."""
    kinds = _normalize_catch(catch)
    loop = _RetryLoop(tag, ex_wrapper)
    attempt = 1
    try:
        while True:
            try:
                return Ok(await body())
            except kinds as exc:
                step = loop.handle(exc, attempt)
            if isinstance(step, (Exhausted, Unhandled)):
                return Err(step)
            await asyncio.sleep(step / 1000.0)
            attempt += 1
    finally:
        loop.close()


def raise_failure(failure: RetryFailure) -> NoReturn:
    """Propagate a loop failure: original for Unhandled, wrapped (chained) for Exhausted."""
    match failure:
        case Exhausted(wrapped=wrapped, error=error) if wrapped is not error:
            raise wrapped from error
        case Exhausted(wrapped=wrapped):
            raise wrapped
        case Unhandled(error=error):
            raise error
    raise TypeError(f"not a retry failure: {failure!r}")


def run_retriable(
    body: Callable[[], T],
    *,
    catch: Catch = DEFAULT_CATCH,
    tag: Hashable | None = None,
    ex_wrapper: ExWrapper | None = None,
) -> T:
    """Run ``body`` as a retriable block and return its result or raise."""
    return attempt_retriable(body, catch=catch, tag=tag, ex_wrapper=ex_wrapper).unwrap_or_else(raise_failure)


async def arun_retriable(
    body: Callable[[], Awaitable[T]],
    *,
    catch: Catch = DEFAULT_CATCH,
    tag: Hashable | None = None,
    ex_wrapper: ExWrapper | None = None,
) -> T:
    """Async run_retriable(); waiting suspends only the current task."""
    result = await aattempt_retriable(body, catch=catch, tag=tag, ex_wrapper=ex_wrapper)
    return result.unwrap_or_else(raise_failure)


@overload
def retriable(func: Callable[P, T], /) -> Callable[P, T]: ...
@overload
def retriable(
    *, catch: Catch = ..., tag: Hashable | None = ..., ex_wrapper: ExWrapper | None = ...,
) -> Callable[[Callable[P, T]], Callable[P, T]]: ...


def retriable(
    func: Callable[P, T] | None = None,
    /,
    *,
    catch: Catch = DEFAULT_CATCH,
    tag: Hashable | None = None,
    ex_wrapper: ExWrapper | None = None,
) -> Callable[P, T] | Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator marking a function as retriable. Works on sync and async functions.

    Each call of the decorated function is a separate retriable block with
    its own ErrorToken. Usable bare (``@retriable``) or configured.
    """
    kinds = _normalize_catch(catch)

    def decorator(fn: Callable[P, T]) -> Callable[P, T]:
        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return run_retriable(lambda: fn(*args, **kwargs), catch=kinds, tag=tag, ex_wrapper=ex_wrapper)

        @wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await arun_retriable(lambda: fn(*args, **kwargs), catch=kinds, tag=tag,  # type: ignore[arg-type,return-value]
                                        ex_wrapper=ex_wrapper)

        return async_wrapper if inspect.iscoroutinefunction(fn) else wrapper  # type: ignore[return-value]

    return decorator(func) if func is not None else decorator
