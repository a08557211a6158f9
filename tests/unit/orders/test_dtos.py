"""Unit tests for order DTO validation (through ``parse_dto``)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from modules.orders.constants import Courier, OrderStatus
from modules.orders.dtos import CancelOrderDTO, ShipOrderDTO, UpdateStatusDTO
from shared.domain.dto import parse_dto
from shared.domain.errors import ValidationFailed

pytestmark = pytest.mark.unit


class TestShipOrderDTO:
    def test_valid_payload(self):
        result = parse_dto(ShipOrderDTO, {"courier_name": "TCS", "tracking_id": " TCS-123 "})
        assert result.ok
        assert result.value.courier_name == Courier.TCS
        assert result.value.tracking_id == "TCS-123"

    def test_blank_tracking_id_rejected(self):
        result = parse_dto(ShipOrderDTO, {"courier_name": "TCS", "tracking_id": "   "})
        assert isinstance(result.error, ValidationFailed)
        assert result.error.details["attr"] == "tracking_id"
        assert result.error.message == "Tracking ID is required to ship an order."

    def test_missing_courier_rejected(self):
        result = parse_dto(ShipOrderDTO, {"tracking_id": "TCS-123"})
        assert not result.ok
        assert result.error.details["attr"] == "courier_name"

    def test_unknown_courier_rejected(self):
        result = parse_dto(ShipOrderDTO, {"courier_name": "FedEx", "tracking_id": "X1"})
        assert not result.ok

    def test_dto_is_frozen(self):
        dto = ShipOrderDTO(courier_name="M&P", tracking_id="MP-9")
        with pytest.raises(ValidationError):
            dto.tracking_id = "other"


class TestCancelOrderDTO:
    def test_enumerated_reason(self):
        dto = parse_dto(CancelOrderDTO, {"reason": "Changed my mind"}).unwrap()
        assert dto.effective_reason == "Changed my mind"

    def test_other_requires_text(self):
        result = parse_dto(CancelOrderDTO, {"reason": "Other", "other_reason": "  "})
        assert result.error.message == "Please describe the reason when choosing 'Other'."

    def test_other_text_becomes_reason(self):
        dto = parse_dto(
            CancelOrderDTO, {"reason": "Other", "other_reason": "Gift no longer needed"}
        ).unwrap()
        assert dto.effective_reason == "Gift no longer needed"

    def test_blank_reason_rejected(self):
        result = parse_dto(CancelOrderDTO, {"reason": ""})
        assert result.error.code == "validation_error"


class TestUpdateStatusDTO:
    def test_status_normalised(self):
        dto = parse_dto(UpdateStatusDTO, {"status": " Confirmed "}).unwrap()
        assert dto.status == OrderStatus.CONFIRMED

    def test_unknown_status_rejected(self):
        assert not parse_dto(UpdateStatusDTO, {"status": "lost"}).ok
