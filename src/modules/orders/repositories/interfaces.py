"""Order repository interface.

Extends ``IStatusRepository[Order]`` with the collaborator calls the order
services need: audit history, cancellation logs and role-scoped listings.
The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IStatusRepository

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.models import CancellationLog, Order, OrderStatusHistory


class IOrderRepository(IStatusRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes OrderItem children, OrderStatusHistory records
    and the (at most one) CancellationLog.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically (checkout seam)."""

    @abstractmethod
    def list_for_actor(
        self, actor: Actor, filters: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Orders visible to *actor* (own orders, own items, or all)."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        actor: Optional[Actor] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def insert_cancellation_log(self, entry: Dict[str, Any]) -> CancellationLog:
        """Persist the single cancellation log for an order."""

    @abstractmethod
    def list_cancellation_logs(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> Iterable[CancellationLog]:
        """Cancellation logs, newest first, optionally filtered."""

    @abstractmethod
    def seller_cancellation_stats(self) -> List[Dict[str, Any]]:
        """Per-seller cancellation counts and refunded totals."""
