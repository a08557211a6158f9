"""Error values shared across bounded contexts.

Each error is an immutable value with a stable ``code`` (used in API
responses and logs) and a user-facing ``message``.  Module-specific errors
live in each module's ``errors.py`` and extend ``DomainError``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class DomainError:
    """Base error value; ``code`` defaults to the snake-cased class name."""

    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    code_override: ClassVar[str | None] = None

    @property
    def code(self) -> str:
        if self.code_override:
            return self.code_override
        return _CAMEL_BOUNDARY.sub("_", self.__class__.__name__).lower()

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class NotFound(DomainError):
    """The referenced order, return request or wallet does not exist."""


@dataclass(frozen=True)
class Unauthorized(DomainError):
    """Actor role or ownership check failed."""


@dataclass(frozen=True)
class ValidationFailed(DomainError):
    """A required field is missing, blank, or out of range."""

    code_override: ClassVar[str | None] = "validation_error"


@dataclass(frozen=True)
class ConcurrentModification(DomainError):
    """The record changed between load and commit; reload and retry."""

    @classmethod
    def for_status(cls, entity: str, entity_id: Any, expected: str) -> ConcurrentModification:
        return cls(
            message=(
                f"{entity} {entity_id} was modified by someone else "
                f"(expected status '{expected}'). Reload and try again."
            ),
            details={"entity_id": str(entity_id), "expected_status": expected},
        )
