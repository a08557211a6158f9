"""Wallet DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.wallet.constants import AdjustmentDirection
from modules.wallet.models import CustomerWallet, WalletTransaction


class AdminAdjustmentSerializer(serializers.Serializer):
    customer_id = serializers.CharField()
    direction = serializers.ChoiceField(choices=AdjustmentDirection.choices)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reason = serializers.CharField()


class CustomerWalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerWallet
        fields = ["id", "customer_id", "balance", "total_refunds", "total_spent", "updated_at"]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = [
            "id",
            "transaction_type",
            "amount",
            "balance_after",
            "description",
            "order_id",
            "return_request_id",
            "created_at",
        ]
        read_only_fields = fields
