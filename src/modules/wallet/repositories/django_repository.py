"""Django ORM implementation of the wallet repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.wallet.constants import REFUND_TYPES
from modules.wallet.models import CustomerWallet, WalletTransaction
from modules.wallet.repositories.interfaces import IWalletRepository

logger = structlog.get_logger(__name__)


class WalletDjangoRepository(IWalletRepository):
    """Callers wrap ``lock`` + ``record`` in ``transaction.atomic()``."""

    def get_by_id(self, id: str) -> Optional[CustomerWallet]:
        try:
            return CustomerWallet.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = CustomerWallet.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def customer_exists(self, customer_id: Any) -> bool:
        try:
            return get_user_model().objects.filter(pk=customer_id).exists()
        except (ValueError, TypeError, ValidationError):
            return False

    def get_or_create(self, customer_id: Any) -> CustomerWallet:
        wallet, created = CustomerWallet.objects.get_or_create(customer_id=customer_id)
        if created:
            logger.info("wallet.created", customer_id=str(customer_id))
        return wallet

    def lock(self, customer_id: Any) -> CustomerWallet:
        self.get_or_create(customer_id)
        return CustomerWallet.objects.select_for_update().get(customer_id=customer_id)

    def has_linked_entry(self, linked_entity_key: str) -> bool:
        return WalletTransaction.objects.filter(linked_entity_key=linked_entity_key).exists()

    def record(
        self,
        wallet: CustomerWallet,
        amount: Decimal,
        transaction_type: str,
        description: str = "",
        linked_entity_key: Optional[str] = None,
        order_id: Any = None,
        return_request_id: Any = None,
    ) -> WalletTransaction:
        wallet.balance += amount
        update_fields = ["balance"]
        if transaction_type in REFUND_TYPES:
            wallet.total_refunds += amount
            update_fields.append("total_refunds")
        elif amount < 0:
            wallet.total_spent -= amount
            update_fields.append("total_spent")

        entry = WalletTransaction.objects.create(
            wallet=wallet,
            customer_id=wallet.customer_id,
            transaction_type=transaction_type,
            amount=amount,
            balance_after=wallet.balance,
            description=description,
            linked_entity_key=linked_entity_key,
            order_id=order_id,
            return_request_id=return_request_id,
        )
        wallet.save(update_fields=update_fields)

        logger.info(
            "wallet.transaction_recorded",
            customer_id=str(wallet.customer_id),
            transaction_type=transaction_type,
            amount=str(amount),
            balance_after=str(wallet.balance),
        )
        return entry

    def list_transactions(self, customer_id: Any) -> QuerySet:
        return WalletTransaction.objects.filter(customer_id=customer_id).select_related(
            "order", "return_request"
        )
