"""Order, OrderItem, OrderStatusHistory and CancellationLog models.

- Order number auto-generated as human-readable identifier.
- Customer and seller references point at the auth user model; the actor
  role decides which side of the marketplace a user acts for.
- OrderItem snapshots product title and price at checkout time; the catalog
  itself is an external collaborator referenced by ``product_id`` only.
- ``courier_name``/``tracking_id`` are only ever written together with the
  ``shipped`` status (see ``OrderDjangoRepository.transition``).
- CancellationLog is one-to-one with Order: the database rejects a second
  log for the same order even if two cancellations race.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.actors import ActorRole
from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

logger = structlog.get_logger(__name__)


class Order(BaseModel):
    """Order aggregate root.

    ``order_number`` is generated on first save (``ORD-YYYYMMDD-XXXXXX``);
    the UUIDv7 ``id`` is used for every internal reference.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.COD,
    )
    payment_status: models.CharField = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    shipping_address: models.TextField = models.TextField(blank=True, default="")
    courier_name: models.CharField = models.CharField(  # noqa: DJ01
        max_length=50, null=True, blank=True, default=None
    )
    tracking_id: models.CharField = models.CharField(  # noqa: DJ01
        max_length=100, null=True, blank=True, default=None
    )
    delivered_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True, default=None
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["customer", "-created_at"], name="orders_customer_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status__in=[OrderStatus.SHIPPED, OrderStatus.DELIVERED])
                    & models.Q(courier_name__isnull=False)
                    & models.Q(tracking_id__isnull=False)
                )
                | (
                    ~models.Q(status__in=[OrderStatus.SHIPPED, OrderStatus.DELIVERED])
                    & models.Q(courier_name__isnull=True)
                    & models.Q(tracking_id__isnull=True)
                ),
                name="orders_tracking_matches_status",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    @property
    def is_prepaid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def seller_ids(self) -> set[str]:
        return {str(item.seller_id) for item in self.items.all()}

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line item: one product from one seller inside an order.

    ``seller`` scopes seller visibility and cancellation authority.
    ``subtotal`` is always ``quantity * unit_price``, recalculated on save.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    seller: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sold_items",
    )
    product_id: models.UUIDField = models.UUIDField()
    product_title: models.CharField = models.CharField(max_length=255, blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["seller"], name="order_items_seller_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_title or self.product_id} x{self.quantity} (Rs. {self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``actor_id``/``actor_role`` are empty when the system changed the
    status on its own.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    actor_id: models.CharField = models.CharField(max_length=64, blank=True, default="")
    actor_role: models.CharField = models.CharField(
        max_length=20, choices=ActorRole.choices, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"


class CancellationLog(BaseModel):
    """Audit record of who cancelled an order, why, and what was refunded.

    Written once, in the cancelling transaction.  ``refund_processed`` is
    ``False`` for unpaid orders (nothing to refund), which is different
    from a failed refund: a failed credit rolls the whole cancellation back.
    """

    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="cancellation_log",
    )
    cancelled_by: models.CharField = models.CharField(max_length=64)
    cancelled_by_role: models.CharField = models.CharField(
        max_length=20, choices=ActorRole.choices
    )
    reason: models.TextField = models.TextField()
    refund_amount: models.DecimalField = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    refund_processed: models.BooleanField = models.BooleanField(default=False)
    items_restocked: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "cancellation_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["cancelled_by_role", "cancelled_by"], name="cl_actor_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order} cancelled by {self.cancelled_by_role}: {self.reason}"
