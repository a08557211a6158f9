"""Wallet repository interface."""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.wallet.models import CustomerWallet, WalletTransaction


class IWalletRepository(IRepository["CustomerWallet"]):
    @abstractmethod
    def customer_exists(self, customer_id: Any) -> bool:
        """Whether *customer_id* refers to an existing user."""

    @abstractmethod
    def get_or_create(self, customer_id: Any) -> CustomerWallet:
        """Return the customer's wallet, creating a zero-balance one."""

    @abstractmethod
    def lock(self, customer_id: Any) -> CustomerWallet:
        """``get_or_create`` and hold a row lock until the transaction ends."""

    @abstractmethod
    def has_linked_entry(self, linked_entity_key: str) -> bool:
        """Whether a ledger entry already references *linked_entity_key*."""

    @abstractmethod
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
        """Append a signed ledger entry and move the running balance."""

    @abstractmethod
    def list_transactions(self, customer_id: Any) -> Iterable[WalletTransaction]:
        """Ledger entries for *customer_id*, newest first."""
