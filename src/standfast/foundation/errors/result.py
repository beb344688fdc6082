"""Result type for explicit retry outcomes.

A retriable loop finishes in one of three ways: the body produced a value,
a retry policy gave up, or no policy was interested. attempt_retriable()
reports that as a Result instead of raising:

    Ok(value) | Err(Exhausted(wrapped, original)) | Err(Unhandled(original))

run_retriable() is attempt_retriable(...).unwrap_or_else(raise_failure).
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


class Result(Generic[T, E]):
    """Either a value (Ok) or a failure (Err).

    Equal results hash equally; a Result holding an unhashable value is
    itself unhashable.

    Examples:
        >>> attempt_retriable(lambda: 42).unwrap()
        42
        >>> attempt_retriable(fetch).unwrap_or_else(lambda failure: cached_copy)
    """

    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)

    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok

    def is_ok(self) -> bool:
        return self._is_ok

    def is_err(self) -> bool:
        return not self._is_ok

    def unwrap(self) -> T:
        """The value of an Ok. Raises RuntimeError on Err."""
        if not self._is_ok:
            raise RuntimeError(f"unwrap() on {self!r}")
        return self._value  # type: ignore[return-value]

    def unwrap_err(self) -> E:
        """The failure of an Err. Raises RuntimeError on Ok."""
        if self._is_ok:
            raise RuntimeError(f"unwrap_err() on {self!r}")
        return self._value  # type: ignore[return-value]

    def unwrap_or_else(self, on_err: Callable[[E], T]) -> T:
        """The value of an Ok, otherwise whatever on_err returns (or raises) for the failure."""
        return self._value if self._is_ok else on_err(self._value)  # type: ignore[return-value,arg-type]

    def __bool__(self) -> bool:
        return self._is_ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._is_ok == other._is_ok and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Successful outcome."""
    return Result(value, True)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Failed outcome."""
    return Result(error, False)
