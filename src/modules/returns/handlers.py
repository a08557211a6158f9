"""Return workflow event handlers (notification intents only)."""

from __future__ import annotations

import structlog

from modules.returns.events import ReturnRefundIssued, ReturnRequested, ReturnStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ReturnRequestedHandler(IEventHandler[ReturnRequested]):
    def handle(self, event: ReturnRequested) -> None:
        logger.info(
            "returns.notify_seller",
            return_id=str(event.aggregate_id),
            seller_id=event.payload.get("seller_id"),
            reason=event.payload.get("reason"),
        )


class ReturnStatusChangedHandler(IEventHandler[ReturnStatusChanged]):
    def handle(self, event: ReturnStatusChanged) -> None:
        logger.info(
            "returns.notify_status_changed",
            return_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            old_status=event.payload.get("old_status"),
            new_status=event.payload.get("new_status"),
        )


class ReturnRefundIssuedHandler(IEventHandler[ReturnRefundIssued]):
    def handle(self, event: ReturnRefundIssued) -> None:
        logger.info(
            "returns.notify_refund_issued",
            return_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            amount=event.payload.get("amount"),
        )


return_requested_handler = ReturnRequestedHandler()
return_status_changed_handler = ReturnStatusChangedHandler()
return_refund_issued_handler = ReturnRefundIssuedHandler()
