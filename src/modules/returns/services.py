"""Return request workflow.

Independent of the order status machine: a delivered order stays
``delivered`` while its line items go through

    return_requested → under_review → approved | rejected
    approved → item_shipped → item_received → refund_issued

Sellers decide, customers ship the item back, sellers confirm receipt and
admins issue the refund.  Admins may also force approve/reject from any
status except ``refund_issued``.  Every step is a conditional update on
the status the caller loaded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.core.actors import ActorRole
from modules.core.outbox import record_events
from modules.orders.constants import OrderStatus
from modules.orders.services import order_not_found
from modules.returns.constants import (
    REVIEW_OUTCOME,
    ReturnStatus,
)
from modules.returns.dtos import ReturnEligibility
from modules.returns.errors import ReturnWindowExpired
from modules.returns.events import ReturnRefundIssued, ReturnRequested, ReturnStatusChanged
from modules.returns.policy import (
    check_override,
    check_return_transition,
    days_left,
    within_return_window,
)
from modules.wallet.constants import TransactionType, return_refund_key
from modules.wallet.errors import RefundAlreadyIssued
from shared.domain.errors import ConcurrentModification, NotFound, Unauthorized, ValidationFailed
from shared.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.returns.dtos import (
        AdminOverrideDTO,
        CreateReturnDTO,
        ItemShippedDTO,
        SellerResponseDTO,
    )
    from modules.returns.models import ReturnRequest
    from modules.returns.repositories.interfaces import IReturnRepository
    from modules.wallet.services import WalletLedger

logger = structlog.get_logger(__name__)

Guard = Callable[["ReturnRequest", "Actor"], bool]


def _is_admin(ret: ReturnRequest, actor: Actor) -> bool:
    return actor.is_admin


def _owning_seller(ret: ReturnRequest, actor: Actor) -> bool:
    return actor.role == ActorRole.SELLER and actor.owns(ret.seller_id)


def _owning_seller_or_admin(ret: ReturnRequest, actor: Actor) -> bool:
    return actor.is_admin or _owning_seller(ret, actor)


def _owning_customer_or_admin(ret: ReturnRequest, actor: Actor) -> bool:
    return actor.is_admin or (actor.role == ActorRole.CUSTOMER and actor.owns(ret.customer_id))


def can_view_return(ret: ReturnRequest, actor: Actor) -> bool:
    if actor.can_read_everything:
        return True
    if actor.role == ActorRole.SELLER:
        return actor.owns(ret.seller_id)
    return actor.owns(ret.customer_id)


def return_not_found(return_id: Any) -> NotFound:
    return NotFound(f"Return request {return_id} not found.", details={"return_id": str(return_id)})


class ReturnService:
    def __init__(
        self,
        return_repository: IReturnRepository,
        order_repository: IOrderRepository,
        wallet_ledger: WalletLedger,
    ) -> None:
        self._return_repo = return_repository
        self._order_repo = order_repository
        self._ledger = wallet_ledger

    @property
    def window_days(self) -> int:
        return settings.RETURN_WINDOW_DAYS

    # ------------------------------------------------------------------
    # Window / eligibility
    # ------------------------------------------------------------------

    def check_return_window(self, order_id: Any) -> bool:
        """True when the order is delivered and still inside the window."""
        order = self._order_repo.get_by_id(str(order_id))
        if order is None or order.status != OrderStatus.DELIVERED:
            return False
        return within_return_window(order.delivered_at, timezone.now(), self.window_days)

    def return_eligibility(self, order_id: Any, actor: Actor) -> Result[ReturnEligibility]:
        """Pre-form check shown before the customer fills in a return."""
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            return Err(order_not_found(order_id))
        if not (actor.can_read_everything or actor.owns(order.customer_id)):
            return Err(Unauthorized("You can only request returns for your own orders."))

        now = timezone.now()
        if order.status != OrderStatus.DELIVERED:
            eligible, reason = False, "Returns can only be requested for delivered orders."
        elif not within_return_window(order.delivered_at, now, self.window_days):
            eligible, reason = False, ReturnWindowExpired.for_days(self.window_days).message
        else:
            eligible, reason = True, ""

        return Ok(
            ReturnEligibility(
                order_id=str(order.id),
                eligible=eligible,
                reason=reason,
                delivered_at=order.delivered_at,
                days_left=days_left(order.delivered_at, now, self.window_days),
                window_days=self.window_days,
            )
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_return(self, return_id: Any, actor: Actor) -> Result[ReturnRequest]:
        ret = self._return_repo.get_by_id(str(return_id))
        if ret is None:
            return Err(return_not_found(return_id))
        if not can_view_return(ret, actor):
            return Err(Unauthorized("You are not allowed to view this return request."))
        return Ok(ret)

    def list_returns(self, actor: Actor, filters: Optional[Dict[str, Any]] = None) -> Any:
        return self._return_repo.list_for_actor(actor, filters)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_return(self, dto: CreateReturnDTO, actor: Actor) -> Result[ReturnRequest]:
        log = logger.bind(order_id=str(dto.order_id), order_item_id=str(dto.order_item_id), actor_id=actor.id)

        order = self._order_repo.get_by_id(str(dto.order_id))
        if order is None:
            return Err(order_not_found(dto.order_id))
        if actor.role != ActorRole.CUSTOMER or not actor.owns(order.customer_id):
            return Err(Unauthorized("Only the customer who placed the order can request a return."))

        validated = self._validate_new_return(order, dto)
        if not validated.ok:
            log.info("returns.create_refused", error=validated.error.code)
            return validated
        item = validated.value

        try:
            with transaction.atomic():
                ret = self._return_repo.create(
                    {
                        "order_id": order.id,
                        "order_item_id": item.id,
                        "customer_id": order.customer_id,
                        "seller_id": item.seller_id,
                        "product_id": item.product_id,
                        "reason": dto.reason.value,
                        "additional_comments": dto.additional_comments or "",
                        "photos": dto.photo_urls,
                        "refund_amount": dto.refund_amount,
                        "quantity": dto.quantity,
                    }
                )
                record_events(
                    [
                        ReturnRequested(
                            aggregate_id=ret.id,
                            payload={
                                "order_id": str(order.id),
                                "customer_id": str(order.customer_id),
                                "seller_id": str(item.seller_id),
                                "reason": dto.reason.value,
                                "refund_amount": str(dto.refund_amount),
                            },
                        )
                    ]
                )
        except IntegrityError:
            log.info("returns.create_duplicate")
            return Err(self._duplicate_return())

        log.info("returns.requested", return_id=str(ret.id))
        return Ok(ret)

    def mark_under_review(self, return_id: Any, actor: Actor) -> Result[ReturnRequest]:
        return self._advance(
            return_id,
            actor,
            ReturnStatus.UNDER_REVIEW,
            guard=_is_admin,
            denied="Only admins can pick up return requests for review.",
        )

    def seller_respond(
        self, return_id: Any, dto: SellerResponseDTO, actor: Actor
    ) -> Result[ReturnRequest]:
        """Owning seller approves or rejects while the request is still open."""
        target = REVIEW_OUTCOME[dto.action]
        return self._advance(
            return_id,
            actor,
            target,
            guard=_owning_seller,
            denied="Only the seller of this item can respond to the return request.",
            fields={
                "seller_response": dto.response_text or "",
                "seller_responded_at": timezone.now(),
            },
        )

    def mark_item_shipped(
        self, return_id: Any, dto: ItemShippedDTO, actor: Actor
    ) -> Result[ReturnRequest]:
        return self._advance(
            return_id,
            actor,
            ReturnStatus.ITEM_SHIPPED,
            guard=_owning_customer_or_admin,
            denied="Only the customer who requested the return can ship the item back.",
            fields={"tracking_number": dto.tracking_number},
        )

    def confirm_item_received(self, return_id: Any, actor: Actor) -> Result[ReturnRequest]:
        return self._advance(
            return_id,
            actor,
            ReturnStatus.ITEM_RECEIVED,
            guard=_owning_seller_or_admin,
            denied="Only the seller of this item can confirm receipt.",
        )

    def admin_override(
        self, return_id: Any, dto: AdminOverrideDTO, actor: Actor
    ) -> Result[ReturnRequest]:
        """Force approve/reject regardless of the seller's decision."""
        return self._advance(
            return_id,
            actor,
            REVIEW_OUTCOME[dto.action],
            guard=_is_admin,
            denied="Only admins can override return decisions.",
            fields={
                "admin_decision": dto.decision,
                "admin_decided_at": timezone.now(),
                "admin_id": actor.id,
            },
            override=True,
        )

    def process_refund(self, return_id: Any, actor: Actor) -> Result[bool]:
        """Issue the refund for a received item.

        ``Ok(True)``: refunded now.  ``Ok(False)``: it had already been
        refunded, nothing changed.  The status move and the wallet credit
        commit together or not at all.
        """
        log = logger.bind(return_id=str(return_id), actor_id=actor.id)

        if not actor.is_admin:
            return Err(Unauthorized("Only admins can issue refunds."))

        ret = self._return_repo.get_by_id(str(return_id))
        if ret is None:
            return Err(return_not_found(return_id))
        if ret.status == ReturnStatus.REFUND_ISSUED:
            log.info("returns.refund_already_issued")
            return Ok(False)

        checked = check_return_transition(ret.status, ReturnStatus.REFUND_ISSUED)
        if not checked.ok:
            return checked

        with transaction.atomic():
            refunded = self._return_repo.transition(
                ret.id,
                ret.status,
                ReturnStatus.REFUND_ISSUED,
                {"refund_processed_at": timezone.now()},
            )
            if refunded is None:
                if self._return_repo.current_status(ret.id) == ReturnStatus.REFUND_ISSUED:
                    log.info("returns.refund_already_issued", detected_by="precondition")
                    return Ok(False)
                log.warning("returns.concurrent_modification", expected_status=ret.status)
                return Err(ConcurrentModification.for_status("Return request", ret.id, ret.status))

            credited = self._ledger.credit(
                ret.customer_id,
                ret.refund_amount,
                reason=f"Refund for return request {ret.id}",
                linked_entity=return_refund_key(ret.id),
                transaction_type=TransactionType.RETURN_REFUND,
                order_id=ret.order_id,
                return_request_id=ret.id,
            )
            if not credited.ok:
                transaction.set_rollback(True)
                if isinstance(credited.error, RefundAlreadyIssued):
                    # Ledger has the credit but the request was not refund_issued.
                    log.error("returns.refund_ledger_inconsistent", status=ret.status)
                else:
                    log.error("returns.refund_credit_failed", error=credited.error.code)
                return credited

            record_events(
                [
                    ReturnRefundIssued(
                        aggregate_id=ret.id,
                        payload={
                            "customer_id": str(ret.customer_id),
                            "order_id": str(ret.order_id),
                            "amount": str(ret.refund_amount),
                            "balance_after": str(credited.value),
                            "admin_id": actor.id,
                        },
                    )
                ]
            )

        log.info("returns.refund_issued", amount=str(ret.refund_amount))
        return Ok(True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_new_return(self, order: Order, dto: CreateReturnDTO) -> Result[Any]:
        if order.status != OrderStatus.DELIVERED:
            return Err(
                ValidationFailed(
                    "Returns can only be requested for delivered orders.",
                    details={"attr": "order_id"},
                )
            )
        if not within_return_window(order.delivered_at, timezone.now(), self.window_days):
            return Err(ReturnWindowExpired.for_days(self.window_days))

        item = next((i for i in order.items.all() if i.id == dto.order_item_id), None)
        if item is None:
            return Err(
                ValidationFailed(
                    "The selected item does not belong to this order.",
                    details={"attr": "order_item_id"},
                )
            )
        if dto.quantity > item.quantity:
            return Err(
                ValidationFailed(
                    f"You can return at most {item.quantity} unit(s) of this item.",
                    details={"attr": "quantity"},
                )
            )
        if len(dto.photos) > settings.RETURN_MAX_PHOTOS:
            return Err(
                ValidationFailed(
                    f"You can attach at most {settings.RETURN_MAX_PHOTOS} photos.",
                    details={"attr": "photos"},
                )
            )
        if self._return_repo.has_open_return(item.id):
            return Err(self._duplicate_return())
        return Ok(item)

    @staticmethod
    def _duplicate_return() -> ValidationFailed:
        return ValidationFailed(
            "A return request for this item is already in progress.",
            details={"attr": "order_item_id"},
        )

    @staticmethod
    def _reopen_conflict() -> ValidationFailed:
        return ValidationFailed(
            "The customer has opened a newer return request for this item. "
            "Decide on that request instead of reopening this one.",
            details={"attr": "order_item_id"},
        )

    def _advance(
        self,
        return_id: Any,
        actor: Actor,
        target: str,
        guard: Guard,
        denied: str,
        fields: Optional[Dict[str, Any]] = None,
        override: bool = False,
    ) -> Result[ReturnRequest]:
        """Load, authorize, validate the edge and apply it conditionally."""
        log = logger.bind(return_id=str(return_id), actor_id=actor.id, target_status=str(target))

        ret = self._return_repo.get_by_id(str(return_id))
        if ret is None:
            return Err(return_not_found(return_id))
        if not guard(ret, actor):
            log.warning("returns.access_denied", role=str(actor.role))
            return Err(Unauthorized(denied))

        if override:
            checked = check_override(ret.status, target)
        else:
            checked = check_return_transition(ret.status, target)
        if not checked.ok:
            log.info("returns.transition_refused", current_status=ret.status)
            return checked
        if (
            ret.status == ReturnStatus.REJECTED
            and target != ReturnStatus.REJECTED
            and self._return_repo.has_open_return(ret.order_item_id, exclude_id=ret.id)
        ):
            log.info("returns.reopen_refused", current_status=ret.status)
            return Err(self._reopen_conflict())

        try:
            with transaction.atomic():
                updated = self._return_repo.transition(ret.id, ret.status, target, fields)
                if updated is None:
                    log.warning("returns.concurrent_modification", expected_status=ret.status)
                    return Err(
                        ConcurrentModification.for_status("Return request", ret.id, ret.status)
                    )
                record_events(
                    [
                        ReturnStatusChanged(
                            aggregate_id=ret.id,
                            payload={
                                "customer_id": str(ret.customer_id),
                                "seller_id": str(ret.seller_id),
                                "old_status": ret.status,
                                "new_status": str(target),
                                "actor_id": actor.id,
                                "actor_role": str(actor.role),
                                "override": override,
                            },
                        )
                    ]
                )
        except IntegrityError:
            # A newer request for the item was opened after the check above.
            log.info("returns.reopen_refused", detected_by="unique_constraint")
            return Err(self._reopen_conflict())

        log.info("returns.status_changed", old_status=ret.status, override=override)
        return Ok(updated)


def get_return_service() -> ReturnService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.returns.repositories.django_repository import ReturnDjangoRepository
    from modules.wallet.services import get_wallet_ledger

    return ReturnService(ReturnDjangoRepository(), OrderDjangoRepository(), get_wallet_ledger())
