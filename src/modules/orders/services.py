"""Order service layer (Use Cases).

Generic status changes and the shipment handler.  Cancellation lives in
``modules.orders.cancellation`` because it also touches the wallet.

Every command follows the same unit of work:

1. Load the order fresh and authorize the actor against it.
2. Ask the Order Status Authority whether the edge is legal for the role.
3. Inside ``transaction.atomic()``: conditional status update keyed on
   the loaded status, history row, outbox event.

A conditional update that matches no row means someone else moved the
order in between; the caller gets ``ConcurrentModification`` and nothing
is written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.actors import ActorRole
from modules.core.outbox import record_events
from modules.orders.authority import allowed_next_statuses, check_transition
from modules.orders.constants import OrderStatus
from modules.orders.dtos import ShipmentPrompt
from modules.orders.events import OrderShipped, OrderStatusChanged
from shared.domain.errors import ConcurrentModification, NotFound, Unauthorized, ValidationFailed
from shared.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.dtos import ShipOrderDTO, UpdateStatusDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

DEDICATED_OPERATIONS: Dict[str, str] = {
    OrderStatus.SHIPPED: "Use the ship action: courier and tracking ID are required.",
    OrderStatus.CANCELLED: "Use the cancel action: a cancellation reason is required.",
}


# ---------------------------------------------------------------------------
# Access rules shared by order use-cases
# ---------------------------------------------------------------------------


def can_view_order(order: Order, actor: Actor) -> bool:
    if actor.can_read_everything:
        return True
    if actor.role == ActorRole.SELLER:
        return actor.id in order.seller_ids()
    return actor.owns(order.customer_id)


def order_write_error(order: Order, actor: Actor) -> Optional[Unauthorized]:
    """Return ``Unauthorized`` unless *actor* may change *order*."""
    if actor.is_admin:
        return None
    if actor.role == ActorRole.SELLER and actor.id in order.seller_ids():
        return None
    if actor.role == ActorRole.CUSTOMER and actor.owns(order.customer_id):
        return None
    return Unauthorized("You are not allowed to modify this order.")


def order_not_found(order_id: Any) -> NotFound:
    return NotFound(f"Order {order_id} not found.", details={"order_id": str(order_id)})


class OrderService:
    """Application service for Order use-cases.

    Receives the repository via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any, actor: Actor) -> Result[Order]:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            return Err(order_not_found(order_id))
        if not can_view_order(order, actor):
            return Err(Unauthorized("You are not allowed to view this order."))
        return Ok(order)

    def list_orders(self, actor: Actor, filters: Optional[Dict[str, Any]] = None) -> Any:
        """Orders visible to *actor*, optionally filtered."""
        return self._order_repo.list_for_actor(actor, filters)

    def available_transitions(self, order_id: Any, actor: Actor) -> Result[List[str]]:
        """Statuses *actor* may move the order into right now."""
        result = self.get_order(order_id, actor)
        if not result.ok:
            return result
        order = result.value
        if order_write_error(order, actor) is not None:
            return Ok([])
        return Ok(sorted(allowed_next_statuses(order.status, actor.role)))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def update_status(
        self, order_id: Any, dto: UpdateStatusDTO, actor: Actor
    ) -> Result[Order]:
        """Generic transition (confirm, process, deliver).

        ``shipped`` and ``cancelled`` need extra data and go through
        ``ship_order`` / ``CancellationService.cancel_order``.  Delivery
        stamps ``delivered_at``, which starts the return window.
        """
        log = logger.bind(order_id=str(order_id), new_status=str(dto.status), actor_id=actor.id)

        if dto.status in DEDICATED_OPERATIONS:
            return Err(
                ValidationFailed(
                    DEDICATED_OPERATIONS[dto.status], details={"attr": "status"}
                )
            )

        loaded = self._load_for_write(order_id, actor)
        if not loaded.ok:
            return loaded
        order = loaded.value

        checked = check_transition(order.status, dto.status, actor.role)
        if not checked.ok:
            log.warning("order.transition_refused", current_status=order.status, error=checked.error.code)
            return checked

        fields: Dict[str, Any] = {}
        if dto.status == OrderStatus.DELIVERED:
            fields["delivered_at"] = timezone.now()

        with transaction.atomic():
            updated = self._order_repo.transition(order.id, order.status, dto.status, fields)
            if updated is None:
                log.warning("order.concurrent_modification", expected_status=order.status)
                return Err(ConcurrentModification.for_status("Order", order.id, order.status))

            self._order_repo.add_history(order.id, order.status, dto.status, actor, dto.notes)
            record_events(
                [
                    OrderStatusChanged(
                        aggregate_id=order.id,
                        payload={
                            "old_status": order.status,
                            "new_status": str(dto.status),
                            "actor_id": actor.id,
                            "actor_role": str(actor.role),
                        },
                    )
                ]
            )

        log.info("order.status_updated", old_status=order.status)
        return Ok(updated)

    def begin_shipment(self, order_id: Any, actor: Actor) -> Result[ShipmentPrompt]:
        """Pre-flight for the shipping dialog: is this order shippable by *actor*?"""
        loaded = self._load_for_write(order_id, actor)
        if not loaded.ok:
            return loaded
        order = loaded.value
        return check_transition(order.status, OrderStatus.SHIPPED, actor.role).map(
            lambda _: ShipmentPrompt.for_order(order)
        )

    def ship_order(self, order_id: Any, dto: ShipOrderDTO, actor: Actor) -> Result[Order]:
        """Move ``processing → shipped`` with courier and tracking id.

        Status and tracking metadata land in the same conditional update,
        so no reader ever sees a shipped order without a tracking id.
        """
        log = logger.bind(order_id=str(order_id), actor_id=actor.id, courier=str(dto.courier_name))

        loaded = self._load_for_write(order_id, actor)
        if not loaded.ok:
            return loaded
        order = loaded.value

        checked = check_transition(order.status, OrderStatus.SHIPPED, actor.role)
        if not checked.ok:
            log.warning("order.ship_refused", current_status=order.status, error=checked.error.code)
            return checked

        with transaction.atomic():
            updated = self._order_repo.transition(
                order.id,
                order.status,
                OrderStatus.SHIPPED,
                {"courier_name": dto.courier_name.value, "tracking_id": dto.tracking_id},
            )
            if updated is None:
                log.warning("order.concurrent_modification", expected_status=order.status)
                return Err(ConcurrentModification.for_status("Order", order.id, order.status))

            self._order_repo.add_history(
                order.id,
                order.status,
                OrderStatus.SHIPPED,
                actor,
                f"Shipped via {dto.courier_name.value} (tracking {dto.tracking_id})",
            )
            record_events(
                [
                    OrderShipped(
                        aggregate_id=order.id,
                        payload={
                            "customer_id": str(order.customer_id),
                            "courier_name": dto.courier_name.value,
                            "tracking_id": dto.tracking_id,
                            "actor_id": actor.id,
                        },
                    )
                ]
            )

        log.info("order.shipped", tracking_id=dto.tracking_id)
        return Ok(updated)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_for_write(self, order_id: Any, actor: Actor) -> Result[Order]:
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            return Err(order_not_found(order_id))
        error = order_write_error(order, actor)
        if error is not None:
            logger.warning("order.access_denied", order_id=str(order_id), actor_id=actor.id, role=str(actor.role))
            return Err(error)
        return Ok(order)


def get_order_service() -> OrderService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return OrderService(OrderDjangoRepository())
