"""Customer wallet and its append-only transaction ledger.

``CustomerWallet.balance`` is a running total that must always equal the
sum of the wallet's transaction amounts; both are written in the same
transaction by ``WalletDjangoRepository.record``.  ``linked_entity_key``
is unique so the same cancellation or return can never be refunded twice,
even when two sessions race past the application-level check.

``total_spent`` accumulates debits taken out of the wallet; checkout
spending is recorded by the storefront, not here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.wallet.constants import TransactionType


class CustomerWallet(BaseModel):
    customer: models.OneToOneField = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="wallet",
    )
    balance: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_refunds: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_spent: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    class Meta:
        db_table = "customer_wallets"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name="customer_wallets_balance_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Wallet({self.customer_id}): Rs. {self.balance}"


class WalletTransaction(BaseModel):
    """Immutable ledger entry; ``amount`` is signed (debits are negative)."""

    wallet: models.ForeignKey = models.ForeignKey(
        "wallet.CustomerWallet",
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="wallet_transactions",
    )
    transaction_type: models.CharField = models.CharField(
        max_length=30, choices=TransactionType.choices
    )
    amount: models.DecimalField = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2
    )
    description: models.TextField = models.TextField(blank=True, default="")
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
    )
    return_request: models.ForeignKey = models.ForeignKey(
        "returns.ReturnRequest",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="wallet_transactions",
    )
    linked_entity_key: models.CharField = models.CharField(  # noqa: DJ01
        max_length=100, unique=True, null=True, blank=True, default=None
    )

    class Meta:
        db_table = "wallet_transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="wallet_tx_customer_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValueError("Wallet transactions are immutable.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.transaction_type} {self.amount} -> {self.balance_after}"
