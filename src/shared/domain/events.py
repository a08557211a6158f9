"""Domain event primitives shared by the order, return and wallet modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Base domain event (immutable).

    ``topic`` groups events for the outbox publisher; ``payload`` carries
    the facts consumers need (status pair, amounts, actor) as plain JSON
    values.
    """

    aggregate_id: UUID
    payload: Dict[str, Any] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    topic = "default"

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

