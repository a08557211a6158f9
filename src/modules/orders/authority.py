"""Pure order-status decisions: legal next statuses and cancellability.

No I/O happens here.  Services call these functions both before showing an
action and again at commit time against the freshly loaded status.
"""

from __future__ import annotations

from typing import Optional, Tuple

from modules.core.actors import ActorRole
from modules.orders.constants import (
    CANCELLABLE_STATES,
    NOT_CANCELLABLE_REASONS,
    ROLE_TARGETS,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.errors import InvalidTransition
from shared.domain.errors import Unauthorized
from shared.domain.result import Err, Ok, Result


def next_statuses(current: str) -> frozenset[str]:
    """Statuses reachable in one step from *current* (empty when terminal)."""
    return VALID_TRANSITIONS.get(current, frozenset())


def allowed_next_statuses(current: str, role: Optional[str]) -> frozenset[str]:
    """``next_statuses`` restricted to the edges *role* may take."""
    if role is None:
        return next_statuses(current)
    return next_statuses(current) & ROLE_TARGETS.get(role, frozenset())


def check_transition(current: str, requested: str, role: str) -> Result[str]:
    """Validate one step of the order status machine for *role*.

    Missing edge → ``InvalidTransition`` (regardless of role); existing edge
    the role may not take → ``Unauthorized``.
    """
    if requested not in next_statuses(current):
        return Err(InvalidTransition.between(current, requested))
    if requested not in ROLE_TARGETS.get(role, frozenset()):
        return Err(
            Unauthorized(
                f"A {ActorRole(role).label.lower()} may not move an order "
                f"to '{requested}'."
            )
        )
    return Ok(requested)


def can_cancel(current: str) -> Tuple[bool, str]:
    """Return ``(allowed, reason)``; *reason* is user-facing when refused."""
    if current in CANCELLABLE_STATES:
        return True, ""
    return False, NOT_CANCELLABLE_REASONS.get(
        current, f"Orders in status '{current}' cannot be cancelled."
    )


def is_terminal(current: str) -> bool:
    return not next_statuses(current)


__all__ = [
    "OrderStatus",
    "allowed_next_statuses",
    "can_cancel",
    "check_transition",
    "is_terminal",
    "next_statuses",
]
