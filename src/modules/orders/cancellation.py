"""Cancellation orchestrator.

Cancelling is one atomic unit: conditional status update, cancellation
log, wallet refund (prepaid orders only), history row and the
``OrderCancelled`` outbox event that drives restocking.  If any step
fails the whole transaction rolls back and the order stays as it was.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

import structlog
from django.db import transaction

from modules.core.actors import ActorRole
from modules.core.outbox import record_events
from modules.orders.authority import can_cancel, check_transition
from modules.orders.constants import (
    CUSTOMER_CANCELLATION_REASONS,
    SELLER_CANCELLATION_REASONS,
    OrderStatus,
)
from modules.orders.dtos import CancellationEligibility, CancellationOutcome
from modules.orders.errors import NotCancellable
from modules.orders.events import OrderCancelled
from modules.orders.services import order_not_found, order_write_error
from modules.wallet.constants import TransactionType, order_cancellation_key
from shared.domain.errors import ConcurrentModification, Unauthorized, ValidationFailed
from shared.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.dtos import CancelOrderDTO
    from modules.orders.models import CancellationLog, Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.wallet.services import WalletLedger

logger = structlog.get_logger(__name__)


def cancellation_reasons(role: str) -> Tuple[str, ...]:
    """Reason list shown to *role*; admins cancel on the seller's behalf."""
    if role == ActorRole.CUSTOMER:
        return CUSTOMER_CANCELLATION_REASONS
    return SELLER_CANCELLATION_REASONS


def refund_due(order: Order) -> Decimal:
    return order.total_amount if order.is_prepaid else Decimal("0.00")


class CancellationService:
    def __init__(self, order_repository: IOrderRepository, wallet_ledger: WalletLedger) -> None:
        self._order_repo = order_repository
        self._ledger = wallet_ledger

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def eligibility(self, order_id: Any, actor: Actor) -> Result[CancellationEligibility]:
        """What the cancellation dialog shows before the user commits."""
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            return Err(order_not_found(order_id))
        error = order_write_error(order, actor)
        if error is not None:
            return Err(error)

        allowed, reason = can_cancel(order.status)
        return Ok(
            CancellationEligibility(
                order_id=str(order.id),
                allowed=allowed,
                reason=reason,
                reasons=list(cancellation_reasons(actor.role)),
                refund_amount=refund_due(order),
                refund_to_wallet=order.is_prepaid,
            )
        )

    def list_cancellation_logs(
        self, actor: Actor, filters: Optional[Dict[str, Any]] = None
    ) -> Result[Iterable[CancellationLog]]:
        scoped = dict(filters or {})
        if actor.role == ActorRole.SELLER:
            scoped["order__items__seller_id"] = actor.id
        elif not actor.can_read_everything:
            scoped["order__customer_id"] = actor.id
        return Ok(self._order_repo.list_cancellation_logs(scoped))

    def seller_cancellation_stats(self, actor: Actor) -> Result[List[Dict[str, Any]]]:
        if not actor.is_admin:
            return Err(Unauthorized("Only admins can view seller cancellation statistics."))
        return Ok(self._order_repo.seller_cancellation_stats())

    # ------------------------------------------------------------------
    # Command
    # ------------------------------------------------------------------

    def cancel_order(
        self, order_id: Any, dto: CancelOrderDTO, actor: Actor
    ) -> Result[CancellationOutcome]:
        log = logger.bind(order_id=str(order_id), actor_id=actor.id, actor_role=str(actor.role))

        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            return Err(order_not_found(order_id))
        error = order_write_error(order, actor)
        if error is not None:
            log.warning("order.cancel_unauthorized")
            return Err(error)

        allowed, reason = can_cancel(order.status)
        if not allowed:
            log.info("order.cancel_refused", current_status=order.status)
            return Err(NotCancellable(reason, details={"current_status": order.status}))

        checked = check_transition(order.status, OrderStatus.CANCELLED, actor.role)
        if not checked.ok:
            return checked

        if dto.reason not in cancellation_reasons(actor.role):
            return Err(
                ValidationFailed(
                    f"'{dto.reason}' is not a valid cancellation reason.",
                    details={"attr": "reason"},
                )
            )

        stored_reason = dto.effective_reason
        refund_amount = refund_due(order)
        refund_processed = False

        with transaction.atomic():
            cancelled = self._order_repo.transition(order.id, order.status, OrderStatus.CANCELLED)
            if cancelled is None:
                log.warning("order.concurrent_modification", expected_status=order.status)
                return Err(ConcurrentModification.for_status("Order", order.id, order.status))

            if order.is_prepaid and refund_amount > 0:
                credited = self._ledger.credit(
                    order.customer_id,
                    refund_amount,
                    reason=f"Refund for cancelled order {order.order_number}",
                    linked_entity=order_cancellation_key(order.id),
                    transaction_type=TransactionType.CANCELLATION_REFUND,
                    order_id=order.id,
                )
                if not credited.ok:
                    transaction.set_rollback(True)
                    log.error("order.cancel_refund_failed", error=credited.error.code)
                    return credited
                refund_processed = True

            self._order_repo.insert_cancellation_log(
                {
                    "order_id": order.id,
                    "cancelled_by": actor.id,
                    "cancelled_by_role": actor.role,
                    "reason": stored_reason,
                    "refund_amount": refund_amount,
                    "refund_processed": refund_processed,
                    # Restocking is done by the OrderCancelled consumer.
                    "items_restocked": True,
                }
            )
            self._order_repo.add_history(
                order.id, order.status, OrderStatus.CANCELLED, actor, stored_reason
            )
            record_events(
                [
                    OrderCancelled(
                        aggregate_id=order.id,
                        payload={
                            "customer_id": str(order.customer_id),
                            "reason": stored_reason,
                            "cancelled_by": actor.id,
                            "cancelled_by_role": str(actor.role),
                            "refund_amount": str(refund_amount),
                            "refund_processed": refund_processed,
                            "items": [
                                {"product_id": str(item.product_id), "quantity": item.quantity}
                                for item in order.items.all()
                            ],
                        },
                    )
                ]
            )

        log.info(
            "order.cancelled",
            previous_status=order.status,
            refund_amount=str(refund_amount),
            refund_processed=refund_processed,
        )
        return Ok(
            CancellationOutcome(
                order=self._order_repo.get_by_id(str(order.id)) or cancelled,
                refund_amount=refund_amount,
                refund_processed=refund_processed,
            )
        )


def get_cancellation_service() -> CancellationService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.wallet.services import get_wallet_ledger

    return CancellationService(OrderDjangoRepository(), get_wallet_ledger())
