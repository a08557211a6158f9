"""Wallet ledger errors."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.errors import DomainError


@dataclass(frozen=True)
class RefundAlreadyIssued(DomainError):
    """A credit for the same linked entity is already on the ledger."""

    @classmethod
    def for_key(cls, linked_entity_key: str) -> RefundAlreadyIssued:
        return cls(
            message="A refund for this request has already been issued.",
            details={"linked_entity_key": linked_entity_key},
        )
