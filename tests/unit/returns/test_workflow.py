"""Unit tests for the return request workflow.

Covers:
- 7-day window measured from delivered_at (frozen clock)
- creation checks: ownership, delivery, item, quantity, photos, duplicates
- full path including a seller rejection overridden by an admin
- idempotent refunds, including a stale second admin
- ledger inconsistency leaves the request untouched
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from freezegun import freeze_time

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.errors import InvalidTransition
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.returns.constants import ReturnStatus
from modules.returns.dtos import (
    AdminOverrideDTO,
    CreateReturnDTO,
    ItemShippedDTO,
    SellerResponseDTO,
)
from modules.returns.errors import ReturnWindowExpired
from modules.returns.models import ReturnRequest
from modules.returns.repositories.django_repository import ReturnDjangoRepository
from modules.returns.services import ReturnService, get_return_service
from modules.wallet.constants import TransactionType, return_refund_key
from modules.wallet.errors import RefundAlreadyIssued
from modules.wallet.models import WalletTransaction
from modules.wallet.services import get_wallet_ledger
from shared.domain.errors import ConcurrentModification, Unauthorized, ValidationFailed

pytestmark = pytest.mark.unit

DELIVERED_AT = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
PHOTO = "https://cdn.example.pk/returns/photo-1.jpg"


@pytest.fixture()
def service():
    return get_return_service()


@pytest.fixture()
def delivered_order(make_order):
    return make_order(OrderStatus.DELIVERED, paid=True, quantity=2, delivered_at=DELIVERED_AT)


def return_dto(order, **overrides) -> CreateReturnDTO:
    data = {
        "order_id": order.id,
        "order_item_id": order.items.all()[0].id,
        "reason": "damaged",
        "additional_comments": "Stitching came apart on first wash",
        "photos": [PHOTO],
        "refund_amount": Decimal("1200.00"),
    }
    data.update(overrides)
    return CreateReturnDTO(**data)


def at_status(ret, status) -> ReturnRequest:
    ReturnRequest.objects.filter(pk=ret.pk).update(status=status)
    return ReturnRequest.objects.get(pk=ret.pk)


# ---------------------------------------------------------------------------
# Window
# ---------------------------------------------------------------------------


class TestReturnWindow:
    @freeze_time("2026-03-08 10:00:00")
    def test_seven_days_after_delivery_is_accepted(self, service, delivered_order, customer_actor):
        assert service.check_return_window(delivered_order.id) is True

        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        assert ret.status == ReturnStatus.RETURN_REQUESTED
        assert ret.photos == [PHOTO]

    @freeze_time("2026-03-09 10:00:00")
    def test_eight_days_after_delivery_is_expired(self, service, delivered_order, customer_actor):
        assert service.check_return_window(delivered_order.id) is False

        result = service.create_return(return_dto(delivered_order), customer_actor)

        assert isinstance(result.error, ReturnWindowExpired)
        assert result.error.code == "return_window_expired"
        assert not ReturnRequest.objects.exists()

    @freeze_time("2026-03-03 09:00:00")
    def test_eligibility_reports_days_left(self, service, delivered_order, customer_actor):
        eligibility = service.return_eligibility(delivered_order.id, customer_actor).unwrap()

        assert eligibility.eligible is True
        assert eligibility.days_left == 6
        assert eligibility.window_days == 7

    def test_eligibility_for_undelivered_order(self, service, make_order, customer_actor):
        order = make_order(OrderStatus.SHIPPED)

        eligibility = service.return_eligibility(order.id, customer_actor).unwrap()

        assert eligibility.eligible is False
        assert eligibility.days_left == 0


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


@freeze_time("2026-03-02 12:00:00")
class TestCreateReturn:
    def test_records_seller_and_event(self, service, delivered_order, seller, customer_actor):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        assert ret.seller_id == seller.id
        assert ret.refund_amount == Decimal("1200.00")
        assert OutboxEvent.objects.filter(event_type="ReturnRequested").count() == 1

    def test_only_order_owner(self, service, delivered_order, other_customer_actor, seller_actor):
        for actor in (other_customer_actor, seller_actor):
            result = service.create_return(return_dto(delivered_order), actor)
            assert isinstance(result.error, Unauthorized)

    def test_undelivered_order(self, service, make_order, customer_actor):
        order = make_order(OrderStatus.SHIPPED)

        result = service.create_return(return_dto(order), customer_actor)

        assert isinstance(result.error, ValidationFailed)
        assert result.error.details["attr"] == "order_id"

    def test_quantity_above_purchased(self, service, delivered_order, customer_actor):
        result = service.create_return(return_dto(delivered_order, quantity=3), customer_actor)
        assert result.error.details["attr"] == "quantity"

    def test_too_many_photos(self, service, delivered_order, customer_actor):
        photos = [f"https://cdn.example.pk/returns/{n}.jpg" for n in range(4)]

        result = service.create_return(return_dto(delivered_order, photos=photos), customer_actor)

        assert result.error.details["attr"] == "photos"

    def test_foreign_item(self, service, delivered_order, make_order, customer_actor):
        other = make_order(OrderStatus.DELIVERED)
        dto = return_dto(delivered_order, order_item_id=other.items.all()[0].id)

        result = service.create_return(dto, customer_actor)

        assert result.error.details["attr"] == "order_item_id"

    def test_duplicate_open_return(self, service, delivered_order, customer_actor):
        service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        result = service.create_return(return_dto(delivered_order), customer_actor)

        assert result.error.message == "A return request for this item is already in progress."

    def test_new_return_allowed_after_rejection(self, service, delivered_order, customer_actor):
        first = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        at_status(first, ReturnStatus.REJECTED)

        assert service.create_return(return_dto(delivered_order), customer_actor).ok


# ---------------------------------------------------------------------------
# Full workflow
# ---------------------------------------------------------------------------


@freeze_time("2026-03-02 12:00:00")
class TestWorkflow:
    def test_rejection_overridden_then_refunded(
        self, service, delivered_order, customer, customer_actor, seller_actor, admin_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        rejected = service.seller_respond(
            ret.id, SellerResponseDTO(action="reject", response_text="Looks used"), seller_actor
        ).unwrap()
        assert rejected.status == ReturnStatus.REJECTED
        assert rejected.seller_response == "Looks used"

        approved = service.admin_override(
            ret.id, AdminOverrideDTO(action="approve", decision="Photos show a defect"), admin_actor
        ).unwrap()
        assert approved.status == ReturnStatus.APPROVED
        assert approved.admin_id == admin_actor.id

        service.mark_item_shipped(
            ret.id, ItemShippedDTO(tracking_number="LEO-778899"), customer_actor
        ).unwrap()
        service.confirm_item_received(ret.id, seller_actor).unwrap()

        assert service.process_refund(ret.id, admin_actor).unwrap() is True
        assert service.process_refund(ret.id, admin_actor).unwrap() is False

        final = ReturnRequest.objects.get(pk=ret.pk)
        assert final.status == ReturnStatus.REFUND_ISSUED
        assert final.tracking_number == "LEO-778899"
        assert final.refund_processed_at is not None

        entries = WalletTransaction.objects.filter(customer=customer)
        assert entries.count() == 1
        assert entries[0].transaction_type == TransactionType.RETURN_REFUND
        assert entries[0].return_request_id == ret.id
        assert get_wallet_ledger().get_balance(customer.id) == Decimal("1200.00")
        assert OutboxEvent.objects.filter(event_type="ReturnRefundIssued").count() == 1

    def test_admin_review_then_seller_approves(
        self, service, delivered_order, customer_actor, seller_actor, admin_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        assert service.mark_under_review(ret.id, admin_actor).unwrap().status == ReturnStatus.UNDER_REVIEW
        approved = service.seller_respond(ret.id, SellerResponseDTO(action="approve"), seller_actor)
        assert approved.unwrap().status == ReturnStatus.APPROVED

    def test_seller_cannot_move_rejected_return(
        self, service, delivered_order, customer_actor, seller_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        service.seller_respond(ret.id, SellerResponseDTO(action="reject"), seller_actor).unwrap()

        result = service.seller_respond(ret.id, SellerResponseDTO(action="approve"), seller_actor)

        assert isinstance(result.error, InvalidTransition)

    def test_other_seller_cannot_respond(
        self, service, delivered_order, customer_actor, other_seller_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        result = service.seller_respond(ret.id, SellerResponseDTO(action="approve"), other_seller_actor)

        assert isinstance(result.error, Unauthorized)

    def test_override_cannot_reopen_when_newer_return_exists(
        self, service, delivered_order, customer_actor, seller_actor, admin_actor
    ):
        first = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        service.seller_respond(first.id, SellerResponseDTO(action="reject"), seller_actor).unwrap()
        second = service.create_return(return_dto(delivered_order), customer_actor).unwrap()

        result = service.admin_override(
            first.id, AdminOverrideDTO(action="approve", decision="Photos show a defect"), admin_actor
        )

        assert isinstance(result.error, ValidationFailed)
        assert result.error.details["attr"] == "order_item_id"
        assert ReturnRequest.objects.get(pk=first.pk).status == ReturnStatus.REJECTED
        assert ReturnRequest.objects.get(pk=second.pk).status == ReturnStatus.RETURN_REQUESTED

    def test_override_reopens_rejected_return_without_newer_one(
        self, service, delivered_order, customer_actor, seller_actor, admin_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        service.seller_respond(ret.id, SellerResponseDTO(action="reject"), seller_actor).unwrap()

        result = service.admin_override(
            ret.id, AdminOverrideDTO(action="approve", decision="Photos show a defect"), admin_actor
        )

        assert result.unwrap().status == ReturnStatus.APPROVED

    def test_override_cannot_touch_refunded(self, service, delivered_order, customer_actor, admin_actor):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        at_status(ret, ReturnStatus.REFUND_ISSUED)

        result = service.admin_override(
            ret.id, AdminOverrideDTO(action="reject", decision="Fraud"), admin_actor
        )

        assert isinstance(result.error, InvalidTransition)

    def test_refund_requires_received_item(self, service, delivered_order, customer_actor, admin_actor):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        at_status(ret, ReturnStatus.APPROVED)

        result = service.process_refund(ret.id, admin_actor)

        assert isinstance(result.error, InvalidTransition)
        assert not WalletTransaction.objects.exists()

    def test_refund_is_admin_only(self, service, delivered_order, customer_actor, seller_actor):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        at_status(ret, ReturnStatus.ITEM_RECEIVED)

        assert isinstance(service.process_refund(ret.id, seller_actor).error, Unauthorized)


# ---------------------------------------------------------------------------
# Refund races
# ---------------------------------------------------------------------------


@freeze_time("2026-03-02 12:00:00")
class TestRefundIdempotency:
    def test_stale_second_admin_gets_already_issued(
        self, delivered_order, customer, customer_actor, admin_actor, monkeypatch
    ):
        ret = get_return_service().create_return(return_dto(delivered_order), customer_actor).unwrap()
        ret = at_status(ret, ReturnStatus.ITEM_RECEIVED)
        repo = ReturnDjangoRepository()
        stale = repo.get_by_id(str(ret.id))

        assert get_return_service().process_refund(ret.id, admin_actor).unwrap() is True

        monkeypatch.setattr(repo, "get_by_id", lambda _id: stale)
        late = ReturnService(repo, OrderDjangoRepository(), get_wallet_ledger())

        assert late.process_refund(ret.id, admin_actor).unwrap() is False
        assert WalletTransaction.objects.filter(customer=customer).count() == 1
        assert get_wallet_ledger().get_balance(customer.id) == Decimal("1200.00")

    def test_stale_seller_decision_is_concurrent_modification(
        self, delivered_order, customer_actor, seller_actor, admin_actor, monkeypatch
    ):
        ret = get_return_service().create_return(return_dto(delivered_order), customer_actor).unwrap()
        repo = ReturnDjangoRepository()
        stale = repo.get_by_id(str(ret.id))
        get_return_service().mark_under_review(ret.id, admin_actor).unwrap()
        monkeypatch.setattr(repo, "get_by_id", lambda _id: stale)
        late = ReturnService(repo, OrderDjangoRepository(), get_wallet_ledger())

        result = late.seller_respond(ret.id, SellerResponseDTO(action="approve"), seller_actor)

        assert isinstance(result.error, ConcurrentModification)
        assert ReturnRequest.objects.get(pk=ret.pk).status == ReturnStatus.UNDER_REVIEW
        assert OutboxEvent.objects.filter(event_type="ReturnStatusChanged").count() == 1

    def test_existing_ledger_credit_rolls_back(
        self, service, delivered_order, customer, customer_actor, admin_actor
    ):
        ret = service.create_return(return_dto(delivered_order), customer_actor).unwrap()
        ret = at_status(ret, ReturnStatus.ITEM_RECEIVED)
        get_wallet_ledger().credit(
            customer.id, Decimal("1200.00"), "manual", return_refund_key(ret.id)
        ).unwrap()

        result = service.process_refund(ret.id, admin_actor)

        assert isinstance(result.error, RefundAlreadyIssued)
        assert ReturnRequest.objects.get(pk=ret.pk).status == ReturnStatus.ITEM_RECEIVED
        assert WalletTransaction.objects.filter(customer=customer).count() == 1
        assert not OutboxEvent.objects.filter(event_type="ReturnRefundIssued").exists()
