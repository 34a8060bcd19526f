"""Two-armed Result type for validation boundaries.

Validating constructors return ``Result`` so that expected failures are
branched on by the immediate caller. Infrastructure faults (storage I/O,
malformed persisted rows) are still raised as ``DomainError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Literal, TypeGuard, TypeVar, Union

from jarvis.core.errors import DomainError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=DomainError)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    data: T

    @property
    def success(self) -> Literal[True]:
        return True


@dataclass(frozen=True, slots=True)
class Fail(Generic[E]):
    error: E

    @property
    def success(self) -> Literal[False]:
        return False


Result = Union[Ok[T], Fail[E]]


def ok(data: T) -> Ok[T]:
    return Ok(data)


def fail(error: E) -> Fail[E]:
    return Fail(error)


def is_ok(result: Ok[T] | Fail[E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_fail(result: Ok[T] | Fail[E]) -> TypeGuard[Fail[E]]:
    return isinstance(result, Fail)


def unwrap(result: Ok[T] | Fail[E]) -> T:
    """Return the success value or raise the wrapped error."""
    if isinstance(result, Ok):
        return result.data
    raise result.error


def unwrap_or(result: Ok[T] | Fail[E], default: T) -> T:
    if isinstance(result, Ok):
        return result.data
    return default


def map_result(result: Ok[T] | Fail[E], fn: Callable[[T], U]) -> Ok[U] | Fail[E]:
    """Apply ``fn`` to a success value; failures pass through untouched."""
    if isinstance(result, Ok):
        return Ok(fn(result.data))
    return result


def flat_map_result(
    result: Ok[T] | Fail[E],
    fn: Callable[[T], Ok[U] | Fail[E]],
) -> Ok[U] | Fail[E]:
    """Chain a Result-returning ``fn``; failures pass through without calling it."""
    if isinstance(result, Ok):
        return fn(result.data)
    return result


__all__ = [
    "Fail",
    "Ok",
    "Result",
    "fail",
    "flat_map_result",
    "is_fail",
    "is_ok",
    "map_result",
    "ok",
    "unwrap",
    "unwrap_or",
]
