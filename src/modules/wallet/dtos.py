"""Wallet DTOs (Pydantic v2, frozen)."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.wallet.constants import AdjustmentDirection


class AdminAdjustmentDTO(BaseModel):
    """Manual balance correction by an admin.

    The reason is mandatory; it ends up as the ledger entry description.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    customer_id: str
    direction: AdjustmentDirection
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    reason: str

    @field_validator("customer_id", mode="before")
    @classmethod
    def coerce_customer_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("reason")
    @classmethod
    def reason_required(cls, v: str) -> str:
        if not v:
            raise ValueError("A reason is required for balance adjustments.")
        return v
