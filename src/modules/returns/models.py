"""Return request model.

One request covers one order line item.  A partial unique index allows
at most one open (non-rejected) request per line item; a rejected request
leaves room for a new one.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.returns.constants import ReturnReason, ReturnStatus


class ReturnRequest(BaseModel):
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="return_requests",
    )
    order_item: models.ForeignKey = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.PROTECT,
        related_name="return_requests",
    )
    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="return_requests",
    )
    seller: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="received_return_requests",
    )
    product_id: models.UUIDField = models.UUIDField()
    reason: models.CharField = models.CharField(max_length=30, choices=ReturnReason.choices)
    additional_comments: models.TextField = models.TextField(blank=True, default="")
    photos: models.JSONField = models.JSONField(default=list, blank=True)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.RETURN_REQUESTED,
    )
    refund_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(default=1)
    seller_response: models.TextField = models.TextField(blank=True, default="")
    seller_responded_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    admin_decision: models.TextField = models.TextField(blank=True, default="")
    admin_decided_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    admin_id: models.CharField = models.CharField(max_length=64, blank=True, default="")
    tracking_number: models.CharField = models.CharField(max_length=100, blank=True, default="")
    refund_processed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "return_requests"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="returns_status_idx"),
            models.Index(fields=["customer", "-created_at"], name="returns_customer_idx"),
            models.Index(fields=["seller", "-created_at"], name="returns_seller_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(refund_amount__gt=0),
                name="returns_refund_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="returns_quantity_positive",
            ),
            models.UniqueConstraint(
                fields=["order_item"],
                condition=~models.Q(status=ReturnStatus.REJECTED),
                name="returns_one_open_per_item",
            ),
        ]

    @property
    def is_refunded(self) -> bool:
        return self.status == ReturnStatus.REFUND_ISSUED

    def __str__(self) -> str:
        return f"Return {self.id} ({self.status})"
