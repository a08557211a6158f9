"""Generic repository interfaces (Dependency Inversion Principle).

``IRepository[T]`` is the base read contract.  ``IStatusRepository[T]``
adds the conditional status update every mutating workflow relies on: the
write only lands when the stored status still equals the status the caller
loaded, so two unsynchronised sessions can never both apply a transition.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Order``, ``ReturnRequest``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """List entities with optional filters."""


class IStatusRepository(IRepository[T]):
    """Repository for aggregates whose lifecycle is a status machine."""

    @abstractmethod
    def transition(
        self,
        id: Any,
        expected_status: str,
        new_status: str,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Optional[T]:
        """Compare-and-swap the status (plus ``fields``) in one update.

        Returns the refreshed entity, or ``None`` when the stored status no
        longer equals ``expected_status``.
        """
