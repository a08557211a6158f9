"""Domain events for the Orders bounded context.

Payloads carry plain JSON values (status strings, decimal amounts as
strings) because they round-trip through the outbox table.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every generic status transition (confirm, process, deliver)."""

    topic = "orders"


@dataclass(frozen=True)
class OrderShipped(DomainEvent):
    """Raised when a seller hands the order to a courier."""

    topic = "orders"


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled; consumers restock its items."""

    topic = "orders"
