"""Integration tests for the return request endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration


@pytest.fixture()
def delivered_order(make_order):
    return make_order(OrderStatus.DELIVERED, paid=True, total=Decimal("2400.00"), quantity=2)


def _create(client, order, **overrides):
    payload = {
        "order_id": str(order.id),
        "order_item_id": str(order.items.all()[0].id),
        "reason": "damaged",
        "additional_comments": "Torn seam",
        "photos": ["https://cdn.example.pk/returns/seam.jpg"],
        "refund_amount": "1200.00",
    }
    payload.update(overrides)
    return client.post("/api/v1/returns/", payload, format="json")


class TestCreateReturn:
    def test_customer_creates(self, client_for, customer, delivered_order):
        response = _create(client_for(customer), delivered_order)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "return_requested"
        assert body["order_number"] == delivered_order.order_number
        assert body["product_title"] == "Embroidered lawn suit"

    def test_duplicate_is_400(self, client_for, customer, delivered_order):
        client = client_for(customer)
        _create(client, delivered_order)

        response = _create(client, delivered_order)

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "order_item_id"

    def test_bad_photo_url(self, client_for, customer, delivered_order):
        response = _create(client_for(customer), delivered_order, photos=["not-a-url"])
        assert response.status_code == 400

    def test_seller_cannot_create(self, client_for, seller, delivered_order):
        assert _create(client_for(seller), delivered_order).status_code == 403


class TestReturnWorkflowApi:
    def test_full_flow(self, client_for, customer, seller, admin_user, delivered_order):
        customer_client = client_for(customer)
        seller_client = client_for(seller)
        admin_client = client_for(admin_user)
        return_id = _create(customer_client, delivered_order).json()["id"]
        base = f"/api/v1/returns/{return_id}"

        assert admin_client.post(f"{base}/review/").json()["status"] == "under_review"
        approved = seller_client.post(f"{base}/respond/", {"action": "approve"}, format="json")
        assert approved.json()["status"] == "approved"
        shipped = customer_client.post(
            f"{base}/ship/", {"tracking_number": "LEO-5566"}, format="json"
        )
        assert shipped.json()["status"] == "item_shipped"
        assert seller_client.post(f"{base}/receive/").json()["status"] == "item_received"

        first = admin_client.post(f"{base}/refund/")
        second = admin_client.post(f"{base}/refund/")

        assert first.json() == {"issued": True, "already_issued": False}
        assert second.status_code == 200
        assert second.json() == {"issued": False, "already_issued": True}
        assert customer_client.get("/api/v1/wallet/").json()["balance"] == "1200.00"

    def test_override_requires_decision(self, client_for, customer, admin_user, delivered_order):
        return_id = _create(client_for(customer), delivered_order).json()["id"]

        response = client_for(admin_user).post(
            f"/api/v1/returns/{return_id}/override/", {"action": "approve"}, format="json"
        )

        assert response.status_code == 400

    def test_receive_before_ship_is_409(self, client_for, customer, seller, delivered_order):
        return_id = _create(client_for(customer), delivered_order).json()["id"]

        response = client_for(seller).post(f"/api/v1/returns/{return_id}/receive/")

        assert response.status_code == 409

    def test_list_is_scoped(self, client_for, customer, other_seller, delivered_order):
        _create(client_for(customer), delivered_order)

        assert client_for(customer).get("/api/v1/returns/").json()["count"] == 1
        assert client_for(other_seller).get("/api/v1/returns/").json()["count"] == 0
        filtered = client_for(customer).get("/api/v1/returns/", {"status": "approved"}).json()
        assert filtered["count"] == 0
