"""Unit tests for the customer wallet ledger.

Covers:
- idempotent credits per linked entity (check + unique constraint)
- refund totals vs. admin adjustments
- admin adjustments: authorization, overdraw, unknown customer
- balance cache invalidation
- wallet/transaction read access
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.cache import cache
from django.db import IntegrityError, transaction

from modules.core.models import OutboxEvent
from modules.wallet.constants import (
    BALANCE_CACHE_KEY,
    AdjustmentDirection,
    TransactionType,
    order_cancellation_key,
    return_refund_key,
)
from modules.wallet.dtos import AdminAdjustmentDTO
from modules.wallet.errors import RefundAlreadyIssued
from modules.wallet.models import CustomerWallet, WalletTransaction
from modules.wallet.repositories.django_repository import WalletDjangoRepository
from modules.wallet.services import get_wallet_ledger
from shared.domain.errors import NotFound, Unauthorized, ValidationFailed

pytestmark = pytest.mark.unit

KEY = "order-cancellation:0190a1b2-0000-7000-8000-000000000001"


@pytest.fixture()
def ledger():
    return get_wallet_ledger()


def adjustment(customer, direction=AdjustmentDirection.ADD, amount="500.00", reason="Goodwill credit"):
    return AdminAdjustmentDTO(
        customer_id=customer.id, direction=direction, amount=Decimal(amount), reason=reason
    )


class TestCredit:
    def test_credit_updates_balance_and_refund_total(self, ledger, customer):
        balance = ledger.credit(customer.id, Decimal("5000.00"), "Refund", KEY).unwrap()

        assert balance == Decimal("5000.00")
        wallet = CustomerWallet.objects.get(customer=customer)
        assert wallet.total_refunds == Decimal("5000.00")
        entry = WalletTransaction.objects.get(linked_entity_key=KEY)
        assert entry.balance_after == Decimal("5000.00")
        assert entry.transaction_type == TransactionType.CANCELLATION_REFUND
        assert OutboxEvent.objects.filter(event_type="WalletCredited").count() == 1

    def test_second_credit_for_same_key_is_refused(self, ledger, customer):
        ledger.credit(customer.id, Decimal("5000.00"), "Refund", KEY).unwrap()

        result = ledger.credit(customer.id, Decimal("5000.00"), "Refund", KEY)

        assert isinstance(result.error, RefundAlreadyIssued)
        assert result.error.details["linked_entity_key"] == KEY
        assert ledger.get_balance(customer.id) == Decimal("5000.00")
        assert WalletTransaction.objects.count() == 1

    def test_unique_constraint_backs_up_the_check(self, ledger, customer):
        ledger.credit(customer.id, Decimal("100.00"), "Refund", KEY).unwrap()

        with patch.object(WalletDjangoRepository, "has_linked_entry", return_value=False):
            result = ledger.credit(customer.id, Decimal("100.00"), "Refund", KEY)

        assert isinstance(result.error, RefundAlreadyIssued)
        assert CustomerWallet.objects.get(customer=customer).balance == Decimal("100.00")

    def test_keys_are_per_entity(self, ledger, customer):
        ledger.credit(customer.id, Decimal("100.00"), "a", order_cancellation_key("x")).unwrap()
        ledger.credit(customer.id, Decimal("50.00"), "b", return_refund_key("x")).unwrap()

        assert ledger.get_balance(customer.id) == Decimal("150.00")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00")])
    def test_non_positive_amount(self, ledger, customer, amount):
        result = ledger.credit(customer.id, amount, "Refund", KEY)
        assert isinstance(result.error, ValidationFailed)


class TestAdjustBalance:
    def test_admin_credit_and_debit(self, ledger, customer, admin_actor):
        ledger.adjust_balance(adjustment(customer, amount="800.00"), admin_actor).unwrap()

        entry = ledger.adjust_balance(
            adjustment(customer, AdjustmentDirection.SUBTRACT, "300.00", "Duplicate credit"),
            admin_actor,
        ).unwrap()

        assert entry.amount == Decimal("-300.00")
        assert entry.balance_after == Decimal("500.00")
        assert entry.description == "Admin adjustment: Duplicate credit"
        wallet = CustomerWallet.objects.get(customer=customer)
        assert wallet.total_refunds == Decimal("0.00")
        assert wallet.total_spent == Decimal("300.00")

    def test_overdraw_refused(self, ledger, customer, admin_actor):
        ledger.adjust_balance(adjustment(customer, amount="100.00"), admin_actor).unwrap()

        result = ledger.adjust_balance(
            adjustment(customer, AdjustmentDirection.SUBTRACT, "100.01"), admin_actor
        )

        assert isinstance(result.error, ValidationFailed)
        assert result.error.details["attr"] == "amount"
        assert ledger.get_balance(customer.id) == Decimal("100.00")

    def test_non_admin_refused(self, ledger, customer, support_actor, customer_actor):
        for actor in (support_actor, customer_actor):
            result = ledger.adjust_balance(adjustment(customer), actor)
            assert isinstance(result.error, Unauthorized)

    def test_unknown_customer(self, ledger, admin_actor):
        dto = AdminAdjustmentDTO(
            customer_id="999999", direction="add", amount=Decimal("1.00"), reason="x"
        )
        assert isinstance(ledger.adjust_balance(dto, admin_actor).error, NotFound)


class TestBalanceCache:
    def test_credit_invalidates_cached_balance(self, ledger, customer):
        assert ledger.get_balance(customer.id) == Decimal("0.00")
        assert cache.get(BALANCE_CACHE_KEY.format(customer_id=customer.id)) == "0.00"

        ledger.credit(customer.id, Decimal("250.00"), "Refund", KEY).unwrap()

        assert cache.get(BALANCE_CACHE_KEY.format(customer_id=customer.id)) is None
        assert ledger.get_balance(customer.id) == Decimal("250.00")


class TestReadAccess:
    def test_owner_and_staff_can_read(self, ledger, customer, customer_actor, support_actor):
        assert ledger.get_wallet(customer.id, customer_actor).ok
        assert ledger.get_wallet(customer.id, support_actor).ok
        assert ledger.list_transactions(customer.id, customer_actor).ok

    def test_other_customer_refused(self, ledger, customer, other_customer_actor):
        assert isinstance(ledger.get_wallet(customer.id, other_customer_actor).error, Unauthorized)
        assert isinstance(
            ledger.list_transactions(customer.id, other_customer_actor).error, Unauthorized
        )


class TestImmutability:
    def test_transactions_cannot_be_edited(self, ledger, customer):
        ledger.credit(customer.id, Decimal("10.00"), "Refund", KEY).unwrap()
        entry = WalletTransaction.objects.get(linked_entity_key=KEY)
        entry.amount = Decimal("99.00")

        with pytest.raises(ValueError, match="immutable"):
            entry.save()

    def test_balance_cannot_go_negative(self, customer):
        wallet = WalletDjangoRepository().get_or_create(customer.id)
        with pytest.raises(IntegrityError), transaction.atomic():
            CustomerWallet.objects.filter(pk=wallet.pk).update(balance=Decimal("-1.00"))
