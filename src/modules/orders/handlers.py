"""Event handlers for Orders domain events.

Customer notifications and inventory are owned by other services; these
handlers record what they would be asked to do.
"""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCancelled, OrderShipped, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.notify_status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.payload.get("old_status"),
            new_status=event.payload.get("new_status"),
        )


class OrderShippedHandler(IEventHandler[OrderShipped]):
    def handle(self, event: OrderShipped) -> None:
        logger.info(
            "order.notify_shipped",
            order_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            courier_name=event.payload.get("courier_name"),
            tracking_id=event.payload.get("tracking_id"),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        items = event.payload.get("items", [])
        logger.info(
            "order.restock_requested",
            order_id=str(event.aggregate_id),
            item_count=len(items),
            units=sum(item.get("quantity", 0) for item in items),
        )
        logger.info(
            "order.notify_cancelled",
            order_id=str(event.aggregate_id),
            customer_id=event.payload.get("customer_id"),
            refund_amount=event.payload.get("refund_amount"),
        )


order_status_changed_handler = OrderStatusChangedHandler()
order_shipped_handler = OrderShippedHandler()
order_cancelled_handler = OrderCancelledHandler()
