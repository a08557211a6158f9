"""Domain events for the returns workflow."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ReturnRequested(DomainEvent):
    topic = "returns"


@dataclass(frozen=True)
class ReturnStatusChanged(DomainEvent):
    topic = "returns"


@dataclass(frozen=True)
class ReturnRefundIssued(DomainEvent):
    topic = "returns"
