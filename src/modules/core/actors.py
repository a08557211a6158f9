"""Explicit acting identity threaded through every service call.

Services never read ambient request/session state: the HTTP layer builds an
``Actor`` from the authenticated user and passes it down, so the same
authorization rules are re-validated at commit time regardless of what the
client claims.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.db import models

SELLER_GROUP = "seller"
SUPPORT_AGENT_GROUP = "support_agent"


class ActorRole(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    SELLER = "seller", "Seller"
    ADMIN = "admin", "Admin"
    SUPPORT_AGENT = "support_agent", "Support agent"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def can_read_everything(self) -> bool:
        return self.role in (ActorRole.ADMIN, ActorRole.SUPPORT_AGENT)

    def owns(self, owner_id: Any) -> bool:
        return owner_id is not None and str(owner_id) == self.id

    @classmethod
    def from_user(cls, user: Any) -> Actor:
        """Map a Django user to an actor (staff → admin, groups → role)."""
        if user.is_superuser or user.is_staff:
            role = ActorRole.ADMIN
        else:
            groups = set(user.groups.values_list("name", flat=True))
            if SUPPORT_AGENT_GROUP in groups:
                role = ActorRole.SUPPORT_AGENT
            elif SELLER_GROUP in groups:
                role = ActorRole.SELLER
            else:
                role = ActorRole.CUSTOMER
        return cls(id=str(user.pk), role=role)
