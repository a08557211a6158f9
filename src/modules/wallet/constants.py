"""Wallet ledger constants."""

from django.db import models


class TransactionType(models.TextChoices):
    CANCELLATION_REFUND = "cancellation_refund", "Cancellation refund"
    RETURN_REFUND = "return_refund", "Return refund"
    ADMIN_CREDIT = "admin_credit", "Admin credit"
    ADMIN_DEBIT = "admin_debit", "Admin debit"


class AdjustmentDirection(models.TextChoices):
    ADD = "add", "Add funds"
    SUBTRACT = "subtract", "Subtract funds"


REFUND_TYPES: frozenset[str] = frozenset(
    {TransactionType.CANCELLATION_REFUND, TransactionType.RETURN_REFUND}
)

BALANCE_CACHE_KEY = "wallet:balance:{customer_id}"


def order_cancellation_key(order_id) -> str:
    return f"order-cancellation:{order_id}"


def return_refund_key(return_id) -> str:
    return f"return-refund:{return_id}"
