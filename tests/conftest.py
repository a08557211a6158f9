from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from modules.core.actors import SELLER_GROUP, SUPPORT_AGENT_GROUP, Actor
from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

User = get_user_model()

TRACKED_STATUSES = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Cached wallet balances must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users / actors
# ---------------------------------------------------------------------------


def _user(username: str, group: str | None = None, **extra):
    user = User.objects.create_user(username=username, password="pass-12345", **extra)
    if group:
        user.groups.add(Group.objects.get_or_create(name=group)[0])
    return user


@pytest.fixture()
def customer():
    return _user("ayesha")


@pytest.fixture()
def other_customer():
    return _user("bilal")


@pytest.fixture()
def seller():
    return _user("lahore-textiles", SELLER_GROUP)


@pytest.fixture()
def other_seller():
    return _user("karachi-shoes", SELLER_GROUP)


@pytest.fixture()
def admin_user():
    return _user("ops-admin", is_staff=True)


@pytest.fixture()
def support_user():
    return _user("helpdesk", SUPPORT_AGENT_GROUP)


@pytest.fixture()
def customer_actor(customer):
    return Actor.from_user(customer)


@pytest.fixture()
def other_customer_actor(other_customer):
    return Actor.from_user(other_customer)


@pytest.fixture()
def seller_actor(seller):
    return Actor.from_user(seller)


@pytest.fixture()
def other_seller_actor(other_seller):
    return Actor.from_user(other_seller)


@pytest.fixture()
def admin_actor(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture()
def support_actor(support_user):
    return Actor.from_user(support_user)


@pytest.fixture()
def client_for():
    """Build an APIClient authenticated as the given user."""

    def _client(user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_order(customer, seller):
    """Create an order (checkout is external) and move it to *status*.

    The status is written directly, bypassing the services, so tests can
    start from any point of the lifecycle.
    """
    repo = OrderDjangoRepository()

    def _make(
        status: str = OrderStatus.PENDING,
        paid: bool = False,
        total: Decimal = Decimal("5000.00"),
        quantity: int = 1,
        order_customer=None,
        order_seller=None,
        delivered_at=None,
    ) -> Order:
        order = repo.create(
            {
                "customer_id": (order_customer or customer).id,
                "payment_method": PaymentMethod.CARD if paid else PaymentMethod.COD,
                "payment_status": PaymentStatus.PAID if paid else PaymentStatus.UNPAID,
                "shipping_address": "House 12, Street 4, Gulberg III, Lahore",
                "items": [
                    {
                        "seller_id": (order_seller or seller).id,
                        "product_id": uuid4(),
                        "product_title": "Embroidered lawn suit",
                        "quantity": quantity,
                        "unit_price": total / quantity,
                    }
                ],
            }
        )
        fields = {"status": status}
        if status in TRACKED_STATUSES:
            fields.update(courier_name="TCS", tracking_id="TCS-000111")
        if status == OrderStatus.DELIVERED:
            fields["delivered_at"] = delivered_at or timezone.now()
        Order.objects.filter(pk=order.pk).update(**fields)
        return repo.get_by_id(str(order.id))

    return _make
