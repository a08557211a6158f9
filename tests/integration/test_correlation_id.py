import logging
import uuid

import pytest

pytestmark = pytest.mark.integration


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_accepts_correlation_id_header(self, client):
        response = client.get("/health", HTTP_X_CORRELATION_ID="cancel-flow-77")
        assert response["X-Request-ID"] == "cancel-flow-77"

    def test_generates_uuid_when_no_request_id(self, client):
        request_id = client.get("/health")["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_unsafe_id_is_replaced(self, client):
        response = client.get("/health", HTTP_X_REQUEST_ID="bad id\nwith newline")
        assert response["X-Request-ID"] != "bad id\nwith newline"
        uuid.UUID(response["X-Request-ID"])

    def test_correlation_id_on_api_responses(self, api_client_with_correlation, customer):
        client, cid = api_client_with_correlation
        client.force_authenticate(user=customer)
        response = client.get("/api/v1/orders/")
        assert response["X-Request-ID"] == cid

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )
