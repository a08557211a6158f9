"""Order domain constants.

Status choices, the transition graph, the edges each role may take, and
the enumerated inputs (cancellation reasons, couriers) the dialogs offer.
"""

from django.db import models

from modules.core.actors import ActorRole


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    UNPAID = "unpaid", "Unpaid"
    PAID = "paid", "Paid"


class PaymentMethod(models.TextChoices):
    COD = "cod", "Cash on delivery"
    WALLET = "wallet", "Wallet"
    CARD = "card", "Card"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"


VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[str] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
)

CANCELLABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}
)

# Target statuses each role may move an order into (intersected with the graph).
ROLE_TARGETS: dict[str, frozenset[str]] = {
    ActorRole.ADMIN: frozenset(OrderStatus.values),
    ActorRole.SELLER: frozenset(OrderStatus.values),
    ActorRole.CUSTOMER: frozenset({OrderStatus.CANCELLED}),
    ActorRole.SUPPORT_AGENT: frozenset(),
}

NOT_CANCELLABLE_REASONS: dict[str, str] = {
    OrderStatus.SHIPPED: (
        "Order has already been shipped and cannot be cancelled online."
    ),
    OrderStatus.DELIVERED: (
        "Order has already been delivered. Please use the returns process."
    ),
    OrderStatus.CANCELLED: "Order has already been cancelled.",
}

OTHER_REASON = "Other"

CUSTOMER_CANCELLATION_REASONS: tuple[str, ...] = (
    "Changed my mind",
    "Found a better price elsewhere",
    "Delivery time too long",
    "Ordered by mistake",
    "Want to change address",
    "Want to change payment method",
    OTHER_REASON,
)

SELLER_CANCELLATION_REASONS: tuple[str, ...] = (
    "Out of Stock",
    "Product discontinued",
    "Pricing error",
    "Cannot ship to this location",
    "Suspected fraudulent order",
    OTHER_REASON,
)


class Courier(models.TextChoices):
    TCS = "TCS", "TCS Express"
    LEOPARDS = "Leopards", "Leopards Courier"
    TEZZ = "TEZZ", "TEZZ Delivery"
    DAEWOO = "Daewoo", "Daewoo Express"
    MNP = "M&P", "M&P Express"
    RIDER = "Rider", "Bykea / Rider"
    OTHER = "Other", "Other Courier"


ORDER_NUMBER_MAX_RETRIES = 5
