"""Customer wallet ledger.

The only writer of wallet balances.  Credits are idempotent per linked
entity (``order-cancellation:<id>``, ``return-refund:<id>``): the check
runs under the wallet row lock and the unique ``linked_entity_key``
column catches anything that slips past it.

Credits join the caller's transaction when there is one, so a refund is
committed or rolled back together with the cancellation or return that
triggered it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import IntegrityError, transaction

from modules.core.outbox import record_events
from modules.wallet.constants import (
    BALANCE_CACHE_KEY,
    AdjustmentDirection,
    TransactionType,
)
from modules.wallet.errors import RefundAlreadyIssued
from modules.wallet.events import WalletAdjusted, WalletCredited
from shared.domain.errors import NotFound, Unauthorized, ValidationFailed
from shared.domain.result import Err, Ok, Result

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.wallet.dtos import AdminAdjustmentDTO
    from modules.wallet.models import CustomerWallet, WalletTransaction
    from modules.wallet.repositories.interfaces import IWalletRepository

logger = structlog.get_logger(__name__)


class WalletLedger:
    def __init__(self, wallet_repository: IWalletRepository) -> None:
        self._wallet_repo = wallet_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_wallet(
        self, customer_id: Any, actor: Optional[Actor] = None
    ) -> Result[CustomerWallet]:
        """Load (or lazily create) a wallet; *actor*, when given, must own it."""
        if actor is not None and not (actor.can_read_everything or actor.owns(customer_id)):
            return Err(Unauthorized("You can only view your own wallet."))
        if not self._wallet_repo.customer_exists(customer_id):
            return Err(NotFound(f"Customer {customer_id} not found."))
        return Ok(self._wallet_repo.get_or_create(customer_id))

    def get_balance(self, customer_id: Any) -> Decimal:
        key = BALANCE_CACHE_KEY.format(customer_id=customer_id)
        cached = cache.get(key)
        if cached is not None:
            return Decimal(cached)
        balance = self._wallet_repo.get_or_create(customer_id).balance
        cache.set(key, str(balance), timeout=settings.WALLET_BALANCE_CACHE_TTL)
        return balance

    def list_transactions(self, customer_id: Any, actor: Actor) -> Result[Any]:
        if not (actor.can_read_everything or actor.owns(customer_id)):
            return Err(Unauthorized("You can only view your own wallet transactions."))
        return Ok(self._wallet_repo.list_transactions(customer_id))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def credit(
        self,
        customer_id: Any,
        amount: Decimal,
        reason: str,
        linked_entity: str,
        transaction_type: str = TransactionType.CANCELLATION_REFUND,
        order_id: Any = None,
        return_request_id: Any = None,
    ) -> Result[Decimal]:
        """Credit a refund once per *linked_entity*; returns the new balance.

        A repeated credit returns ``Err(RefundAlreadyIssued)`` and leaves
        the balance untouched.
        """
        amount = Decimal(amount)
        log = logger.bind(
            customer_id=str(customer_id),
            linked_entity=linked_entity,
            amount=str(amount),
        )
        if amount <= 0:
            return Err(
                ValidationFailed(
                    "Refund amount must be greater than zero.",
                    details={"attr": "amount"},
                )
            )

        try:
            with transaction.atomic():
                wallet = self._wallet_repo.lock(customer_id)
                if self._wallet_repo.has_linked_entry(linked_entity):
                    log.info("wallet.credit_duplicate")
                    return Err(RefundAlreadyIssued.for_key(linked_entity))

                entry = self._wallet_repo.record(
                    wallet,
                    amount,
                    transaction_type,
                    description=reason,
                    linked_entity_key=linked_entity,
                    order_id=order_id,
                    return_request_id=return_request_id,
                )
                record_events(
                    [
                        WalletCredited(
                            aggregate_id=wallet.id,
                            payload={
                                "customer_id": str(customer_id),
                                "amount": str(amount),
                                "balance_after": str(entry.balance_after),
                                "transaction_type": str(transaction_type),
                                "linked_entity_key": linked_entity,
                            },
                        )
                    ]
                )
        except IntegrityError:
            # Another session committed the same linked entity first.
            log.info("wallet.credit_duplicate", detected_by="unique_constraint")
            return Err(RefundAlreadyIssued.for_key(linked_entity))

        self._invalidate_balance(customer_id)
        log.info("wallet.credited", balance_after=str(entry.balance_after))
        return Ok(entry.balance_after)

    def adjust_balance(
        self, dto: AdminAdjustmentDTO, actor: Actor
    ) -> Result[WalletTransaction]:
        """Admin-only manual credit/debit; a debit may not overdraw the wallet."""
        log = logger.bind(
            customer_id=dto.customer_id,
            direction=str(dto.direction),
            amount=str(dto.amount),
            actor_id=actor.id,
        )
        if not actor.is_admin:
            log.warning("wallet.adjustment_unauthorized")
            return Err(Unauthorized("Only admins can adjust wallet balances."))
        if not self._wallet_repo.customer_exists(dto.customer_id):
            return Err(NotFound(f"Customer {dto.customer_id} not found."))

        if dto.direction == AdjustmentDirection.ADD:
            signed, transaction_type = dto.amount, TransactionType.ADMIN_CREDIT
        else:
            signed, transaction_type = -dto.amount, TransactionType.ADMIN_DEBIT

        with transaction.atomic():
            wallet = self._wallet_repo.lock(dto.customer_id)
            if wallet.balance + signed < 0:
                log.info("wallet.adjustment_overdraw", balance=str(wallet.balance))
                return Err(
                    ValidationFailed(
                        f"Insufficient balance: wallet holds Rs. {wallet.balance}.",
                        details={"attr": "amount"},
                    )
                )
            entry = self._wallet_repo.record(
                wallet,
                signed,
                transaction_type,
                description=f"Admin adjustment: {dto.reason}",
            )
            record_events(
                [
                    WalletAdjusted(
                        aggregate_id=wallet.id,
                        payload={
                            "customer_id": dto.customer_id,
                            "amount": str(signed),
                            "balance_after": str(entry.balance_after),
                            "admin_id": actor.id,
                        },
                    )
                ]
            )

        self._invalidate_balance(dto.customer_id)
        log.info("wallet.adjusted", balance_after=str(entry.balance_after))
        return Ok(entry)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _invalidate_balance(self, customer_id: Any) -> None:
        key = BALANCE_CACHE_KEY.format(customer_id=customer_id)
        cache.delete(key)
        # A reader may refill the cache before the outer transaction commits.
        transaction.on_commit(lambda: cache.delete(key))


def get_wallet_ledger() -> WalletLedger:
    from modules.wallet.repositories.django_repository import WalletDjangoRepository

    return WalletLedger(WalletDjangoRepository())
