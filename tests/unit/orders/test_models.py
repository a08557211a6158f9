"""Unit tests for Order, OrderItem, OrderStatusHistory and CancellationLog.

Covers:
- order_number format and retry exhaustion
- subtotal recalculated on save
- tracking fields must match the shipped/delivered statuses (DB constraint)
- one cancellation log per order
- __str__ representations
"""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus
from modules.orders.models import CancellationLog, Order, OrderItem

pytestmark = pytest.mark.unit

ORDER_NUMBER = re.compile(r"^ORD-\d{8}-[0-9A-F]{6}$")


class TestOrder:
    def test_order_number_format(self, make_order):
        order = make_order()
        assert ORDER_NUMBER.match(order.order_number)
        assert str(order) == f"{order.order_number} (pending)"

    def test_order_number_retries_exhausted(self, make_order, customer):
        existing = make_order()
        with patch.object(Order, "generate_order_number", return_value=existing.order_number):
            with pytest.raises(RuntimeError, match="order_number"):
                Order(customer=customer).save()

    def test_is_terminal(self, make_order):
        assert not make_order(OrderStatus.PROCESSING).is_terminal
        assert make_order(OrderStatus.CANCELLED).is_terminal

    def test_is_prepaid(self, make_order):
        assert make_order(paid=True).is_prepaid
        assert not make_order(paid=False).is_prepaid

    def test_shipped_without_tracking_rejected(self, make_order):
        order = make_order(OrderStatus.PROCESSING)
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.filter(pk=order.pk).update(status=OrderStatus.SHIPPED)

    def test_tracking_without_shipping_rejected(self, make_order):
        order = make_order(OrderStatus.PROCESSING)
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.filter(pk=order.pk).update(tracking_id="TCS-1", courier_name="TCS")


class TestOrderItem:
    def test_subtotal_recalculated(self, make_order, seller):
        order = make_order()
        item = OrderItem.objects.create(
            order=order,
            seller=seller,
            product_id=uuid4(),
            product_title="Khaddar shawl",
            quantity=3,
            unit_price=Decimal("999.50"),
        )
        assert item.subtotal == Decimal("2998.50")
        assert "Khaddar shawl x3" in str(item)


class TestCancellationLog:
    def test_one_log_per_order(self, make_order, customer_actor):
        order = make_order()
        entry = {
            "order": order,
            "cancelled_by": customer_actor.id,
            "cancelled_by_role": "customer",
            "reason": "Changed my mind",
        }
        CancellationLog.objects.create(**entry)
        with pytest.raises(IntegrityError), transaction.atomic():
            CancellationLog.objects.create(**entry)
