"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import Courier, OrderStatus
from modules.orders.models import CancellationLog, Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, default="", allow_blank=True)

    def validate_status(self, value: str) -> str:
        value = value.strip().lower()
        if value not in OrderStatus.values:
            raise serializers.ValidationError(f"'{value}' is not a valid order status.")
        return value


class ShipOrderSerializer(serializers.Serializer):
    courier_name = serializers.ChoiceField(choices=Courier.choices)
    tracking_id = serializers.CharField(max_length=100)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField()
    other_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "seller_id",
            "product_id",
            "product_title",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "actor_id",
            "actor_role",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "payment_method",
            "payment_status",
            "total_amount",
            "shipping_address",
            "courier_name",
            "tracking_id",
            "delivered_at",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "payment_status",
            "total_amount",
            "tracking_id",
            "created_at",
        ]
        read_only_fields = fields


class CancellationLogSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = CancellationLog
        fields = [
            "id",
            "order_id",
            "order_number",
            "cancelled_by",
            "cancelled_by_role",
            "reason",
            "refund_amount",
            "refund_processed",
            "items_restocked",
            "created_at",
        ]
        read_only_fields = fields


class SellerCancellationStatsSerializer(serializers.Serializer):
    seller_id = serializers.CharField()
    count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
