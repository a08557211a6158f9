"""Typed outcomes for service operations.

Expected failures (eligibility refusals, lost races, idempotence hits) are
returned as ``Err`` values carrying a ``DomainError`` instead of being
raised.  Only infrastructure failures (the database being unreachable)
propagate as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

from shared.domain.errors import DomainError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self.value))

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: DomainError

    @property
    def ok(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> Err:
        return self

    def unwrap(self):
        raise RuntimeError(f"Called unwrap() on Err: {self.error.message}")


Result = Union[Ok[T], Err]
