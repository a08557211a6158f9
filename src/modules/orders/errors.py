"""Order domain errors.

Returned (never raised) by the Order Status Authority, the shipment
handler and the cancellation orchestrator.  The API layer maps them to
HTTP responses through ``modules.core.responses``.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.errors import DomainError


@dataclass(frozen=True)
class InvalidTransition(DomainError):
    """The requested status is not reachable from the current one.

    Shared by the order and return request status machines.
    """

    @classmethod
    def between(
        cls, current: str, requested: str, entity: str = "order"
    ) -> InvalidTransition:
        return cls(
            message=f"Cannot transition {entity} from '{current}' to '{requested}'.",
            details={"current_status": current, "requested_status": requested},
        )


@dataclass(frozen=True)
class NotCancellable(DomainError):
    """The eligibility gate refused the cancellation; ``message`` says why."""
