"""Return request DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.returns.constants import ReturnReason, ReviewAction
from modules.returns.models import ReturnRequest

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateReturnSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    order_item_id = serializers.UUIDField()
    reason = serializers.ChoiceField(choices=ReturnReason.choices)
    additional_comments = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    photos = serializers.ListField(child=serializers.URLField(), required=False, default=list)
    refund_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    quantity = serializers.IntegerField(min_value=1, default=1)


class SellerResponseSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ReviewAction.choices)
    response_text = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ItemShippedSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100)


class AdminOverrideSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=ReviewAction.choices)
    decision = serializers.CharField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class ReturnRequestSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    product_title = serializers.CharField(source="order_item.product_title", read_only=True)

    class Meta:
        model = ReturnRequest
        fields = [
            "id",
            "order_id",
            "order_number",
            "order_item_id",
            "customer_id",
            "seller_id",
            "product_id",
            "product_title",
            "reason",
            "additional_comments",
            "photos",
            "status",
            "refund_amount",
            "quantity",
            "seller_response",
            "seller_responded_at",
            "admin_decision",
            "admin_decided_at",
            "admin_id",
            "tracking_number",
            "refund_processed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
