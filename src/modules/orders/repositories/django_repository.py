"""Django ORM implementation of the Order repository.

Status changes are conditional ``UPDATE ... WHERE status = <expected>``
statements: the row count tells whether the caller's view of the order was
still current.  No row locks are held between load and commit; the database
decides which of two racing sessions wins.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, QuerySet, Sum
from django.utils import timezone

from modules.core.actors import Actor, ActorRole
from modules.orders.models import CancellationLog, Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` keys:
        - ``customer_id`` (required)
        - ``items`` (required): dicts with ``seller_id``, ``product_id``,
          ``quantity``, ``unit_price`` and optionally ``product_title``
        - ``payment_method``, ``payment_status``, ``shipping_address``,
          ``notes`` (optional)
        """
        order = Order(
            customer_id=data["customer_id"],
            payment_method=data.get("payment_method", Order.payment_method.field.default),
            payment_status=data.get("payment_status", Order.payment_status.field.default),
            shipping_address=data.get("shipping_address", ""),
            notes=data.get("notes", ""),
        )
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                seller_id=item_data["seller_id"],
                product_id=item_data["product_id"],
                product_title=item_data.get("product_title", ""),
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount", "updated_at"])

        self.add_history(order.id, None, order.status, notes="Order created")
        logger.info("order.created", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _base_queryset(self) -> QuerySet:
        return Order.objects.select_related("customer").prefetch_related(
            "items", "status_history"
        )

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with items and history prefetched.

        Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_actor(
        self, actor: Actor, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        queryset = self.list(filters)
        if actor.can_read_everything:
            return queryset
        if actor.role == ActorRole.SELLER:
            return queryset.filter(items__seller_id=actor.id).distinct()
        return queryset.filter(customer_id=actor.id)

    # ------------------------------------------------------------------
    # Conditional status update
    # ------------------------------------------------------------------

    def transition(
        self,
        id: Any,
        expected_status: str,
        new_status: str,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Optional[Order]:
        values = dict(fields or {})
        values["status"] = new_status
        values["updated_at"] = timezone.now()

        updated = Order.objects.filter(id=id, status=expected_status).update(**values)
        log = logger.bind(
            order_id=str(id), expected_status=expected_status, new_status=new_status
        )
        if not updated:
            log.info("order.transition_precondition_failed")
            return None

        log.info("order.transitioned")
        return self.get_by_id(str(id))

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        old_status: Optional[str],
        new_status: str,
        actor: Optional[Actor] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor.id if actor else "",
            actor_role=actor.role if actor else "",
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    # ------------------------------------------------------------------
    # Cancellation logs
    # ------------------------------------------------------------------

    def insert_cancellation_log(self, entry: Dict[str, Any]) -> CancellationLog:
        log_entry = CancellationLog.objects.create(**entry)
        logger.info(
            "order.cancellation_logged",
            order_id=str(log_entry.order_id),
            refund_processed=log_entry.refund_processed,
        )
        return log_entry

    def list_cancellation_logs(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> QuerySet:
        queryset = CancellationLog.objects.select_related("order")
        if filters:
            queryset = queryset.filter(**filters).distinct()
        return queryset

    def seller_cancellation_stats(self) -> List[Dict[str, Any]]:
        rows = (
            CancellationLog.objects.filter(cancelled_by_role=ActorRole.SELLER)
            .values("cancelled_by")
            .annotate(count=Count("id"), total_amount=Sum("refund_amount"))
            .order_by("-count", "cancelled_by")
        )
        return [
            {
                "seller_id": row["cancelled_by"],
                "count": row["count"],
                "total_amount": row["total_amount"] or Decimal("0.00"),
            }
            for row in rows
        ]
