"""Result monad for explicit error handling in application services.

Services return a Result (also known as Either) instead of raising for
expected failures. The error side carries a typed ``UnitaskError`` so callers
can branch on the failure kind without parsing messages.

Example usage:
    >>> result = service.get_task("missing")
    >>> if is_err(result):
    ...     print(result.error.code)
    not_found
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value.

    Attributes:
        value: The success value of type T.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error.

    Attributes:
        error: The error value of type E.
    """

    error: E


# Using Union here as TypeVar aliases don't work with | syntax at runtime
Result = Union[Ok[T], Err[E]]  # noqa: UP007


def is_ok(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is successful."""
    return isinstance(result, Ok)


def is_err(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is an error."""
    return isinstance(result, Err)


def unwrap(result: Ok[T] | Err[E]) -> T:
    """Extract the value from a Result, raising the error if it failed.

    Used inside an enclosing transaction so that a failed step aborts the
    whole unit of work.

    Raises:
        The Err's error when it is an exception, otherwise RuntimeError.
    """
    if isinstance(result, Ok):
        return result.value
    if isinstance(result.error, BaseException):
        raise result.error
    raise RuntimeError(str(result.error))
