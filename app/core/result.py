"""
Result values for expected failures.

Repository, service and session operations return either ``Ok(value)`` or
``Err(error)`` instead of raising for failure modes that are part of their
contract (not found, already exists, invalid token, ...). Exceptions are left
for faults nobody is expected to handle.

Example usage:

    result = repository.find_by_id(todo_id, user_id)
    if result.is_err():
        return Err(to_service_error(result.error))
    todo = result.value
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def map_err(self, fn: Callable[[E], F]) -> "Ok[T]":
        return self


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying a typed error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def map_err(self, fn: Callable[[E], F]) -> "Err[F]":
        return Err(fn(self.error))


Result = Union[Ok[T], Err[E]]
