"""Pure return rules: the post-delivery window and the status graph."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from modules.orders.errors import InvalidTransition
from modules.returns.constants import RETURN_ENTITY, RETURN_TRANSITIONS, ReturnStatus
from shared.domain.result import Err, Ok, Result


def within_return_window(
    delivered_at: Optional[datetime], now: datetime, window_days: int
) -> bool:
    """``now - delivered_at <= window``; undelivered orders are never inside it."""
    if delivered_at is None:
        return False
    return now - delivered_at <= timedelta(days=window_days)


def days_left(delivered_at: Optional[datetime], now: datetime, window_days: int) -> int:
    if not within_return_window(delivered_at, now, window_days):
        return 0
    remaining = delivered_at + timedelta(days=window_days) - now
    return math.ceil(remaining.total_seconds() / 86400)


def check_return_transition(current: str, requested: str) -> Result[str]:
    """Regular workflow step; ``rejected`` and ``refund_issued`` are dead ends."""
    if requested not in RETURN_TRANSITIONS.get(current, frozenset()):
        return Err(InvalidTransition.between(current, requested, RETURN_ENTITY))
    return Ok(requested)


def check_override(current: str, requested: str) -> Result[str]:
    """Admin override: force approve/reject from anything but ``refund_issued``."""
    if (
        current == ReturnStatus.REFUND_ISSUED
        or current == requested
        or requested not in (ReturnStatus.APPROVED, ReturnStatus.REJECTED)
    ):
        return Err(InvalidTransition.between(current, requested, RETURN_ENTITY))
    return Ok(requested)
