"""Order DTOs for the Service Layer.

Framework-agnostic contracts using Pydantic v2, immutable
(``frozen=True``).  Views build them through ``shared.domain.dto.parse_dto``
so a malformed request becomes a ``ValidationFailed`` outcome.

- ``UpdateStatusDTO``: generic status change (confirm, process, deliver).
- ``ShipOrderDTO``: courier + tracking id, both mandatory.
- ``CancelOrderDTO``: enumerated reason, free text when "Other".
- ``ShipmentPrompt`` / ``CancellationEligibility``: read models shown
  before the user commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import OTHER_REASON, Courier, OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ShipOrderDTO(BaseModel):
    """Tracking metadata required to move an order to ``shipped``.

    The tracking id is opaque: only non-blank is enforced.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    courier_name: Courier
    tracking_id: str

    @field_validator("tracking_id")
    @classmethod
    def tracking_id_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Tracking ID is required to ship an order.")
        return v


class CancelOrderDTO(BaseModel):
    """Cancellation request.

    ``reason`` is one entry of the actor's reason list; picking "Other"
    requires ``other_reason``, which then becomes the stored reason.  The
    list itself is checked by the service, which knows the actor's role.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    reason: str
    other_reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def reason_required(cls, v: str) -> str:
        if not v:
            raise ValueError("A cancellation reason is required.")
        return v

    @model_validator(mode="after")
    def other_needs_text(self):
        if self.reason == OTHER_REASON and not self.other_reason:
            raise ValueError("Please describe the reason when choosing 'Other'.")
        return self

    @property
    def effective_reason(self) -> str:
        if self.reason == OTHER_REASON:
            return self.other_reason or ""
        return self.reason


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class CourierOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class ShipmentPrompt(BaseModel):
    """What the shipping dialog needs before the seller commits."""

    model_config = ConfigDict(frozen=True)

    order_id: str
    order_number: str
    couriers: List[CourierOption]

    @classmethod
    def for_order(cls, order: Order) -> ShipmentPrompt:
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            couriers=[
                CourierOption(value=value, label=label) for value, label in Courier.choices
            ],
        )


class CancellationEligibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    allowed: bool
    reason: str
    reasons: List[str]
    refund_amount: Decimal
    refund_to_wallet: bool


@dataclass(frozen=True)
class CancellationOutcome:
    order: Order
    refund_amount: Decimal
    refund_processed: bool
