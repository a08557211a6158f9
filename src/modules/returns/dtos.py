"""Return workflow DTOs (Pydantic v2, frozen).

The photo cap is configurable (``RETURN_MAX_PHOTOS``), so it is checked
by the service rather than here.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from modules.returns.constants import ReturnReason, ReviewAction


class CreateReturnDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    order_id: UUID
    order_item_id: UUID
    reason: ReturnReason
    additional_comments: Optional[str] = None
    photos: List[HttpUrl] = Field(default_factory=list)
    refund_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    quantity: int = Field(default=1, ge=1)

    @property
    def photo_urls(self) -> List[str]:
        return [str(url) for url in self.photos]


class SellerResponseDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    action: ReviewAction
    response_text: Optional[str] = None


class ItemShippedDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    tracking_number: str

    @field_validator("tracking_number")
    @classmethod
    def tracking_number_required(cls, v: str) -> str:
        if not v:
            raise ValueError("A tracking number is required for the returned item.")
        return v


class AdminOverrideDTO(BaseModel):
    """Admin decision; the text is mandatory because it is the audit record."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    action: ReviewAction
    decision: str

    @field_validator("decision")
    @classmethod
    def decision_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Please record the reason for the override decision.")
        return v


class ReturnEligibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    eligible: bool
    reason: str
    delivered_at: Optional[datetime]
    days_left: int
    window_days: int
