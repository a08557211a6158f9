"""Domain events for the wallet ledger."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class WalletCredited(DomainEvent):
    """A refund landed in a customer's wallet."""

    topic = "wallet"


@dataclass(frozen=True)
class WalletAdjusted(DomainEvent):
    """An admin added or subtracted funds manually."""

    topic = "wallet"
