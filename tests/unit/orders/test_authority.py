"""Unit tests for the Order Status Authority and the cancellation gate.

Covers:
- Every (status, role, requested) triple is accepted iff the edge exists
  and the role may take it (property test).
- Missing edges report InvalidTransition even for unauthorized roles.
- can_cancel for every status value, with the user-facing reasons.
"""

from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from modules.core.actors import ActorRole
from modules.orders.authority import (
    allowed_next_statuses,
    can_cancel,
    check_transition,
    is_terminal,
    next_statuses,
)
from modules.orders.constants import OrderStatus
from modules.orders.errors import InvalidTransition
from shared.domain.errors import Unauthorized

pytestmark = pytest.mark.unit

GRAPH = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}

ROLE_MAY_REQUEST = {
    "admin": set(GRAPH),
    "seller": set(GRAPH),
    "customer": {"cancelled"},
    "support_agent": set(),
}

statuses = st.sampled_from(sorted(GRAPH))
roles = st.sampled_from(sorted(ROLE_MAY_REQUEST))


class TestTransitionProperty:
    @settings(max_examples=300, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(current=statuses, role=roles, requested=statuses)
    def test_accepted_iff_edge_exists_and_role_authorized(self, current, role, requested):
        result = check_transition(current, requested, role)

        edge_exists = requested in GRAPH[current]
        authorized = requested in ROLE_MAY_REQUEST[role]

        assert result.ok == (edge_exists and authorized)
        if not edge_exists:
            assert isinstance(result.error, InvalidTransition)
        elif not authorized:
            assert isinstance(result.error, Unauthorized)
        else:
            assert result.value == requested

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(current=statuses, role=roles)
    def test_allowed_next_statuses_is_role_filtered_graph(self, current, role):
        assert allowed_next_statuses(current, role) == GRAPH[current] & ROLE_MAY_REQUEST[role]


class TestTransitionExamples:
    def test_shipped_to_shipped_is_invalid(self):
        result = check_transition(OrderStatus.SHIPPED, OrderStatus.SHIPPED, ActorRole.SELLER)
        assert isinstance(result.error, InvalidTransition)
        assert result.error.code == "invalid_transition"
        assert "shipped" in result.error.message

    def test_missing_edge_wins_over_missing_permission(self):
        result = check_transition(
            OrderStatus.DELIVERED, OrderStatus.PENDING, ActorRole.SUPPORT_AGENT
        )
        assert isinstance(result.error, InvalidTransition)

    def test_customer_cannot_confirm(self):
        result = check_transition(OrderStatus.PENDING, OrderStatus.CONFIRMED, ActorRole.CUSTOMER)
        assert isinstance(result.error, Unauthorized)

    def test_terminal_states_have_no_next_status(self):
        assert next_statuses(OrderStatus.DELIVERED) == frozenset()
        assert next_statuses(OrderStatus.CANCELLED) == frozenset()
        assert is_terminal(OrderStatus.CANCELLED)
        assert not is_terminal(OrderStatus.SHIPPED)

    def test_unknown_role_gets_nothing(self):
        assert allowed_next_statuses(OrderStatus.PENDING, "courier") == frozenset()


class TestCanCancel:
    @pytest.mark.parametrize(
        "status", [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING]
    )
    def test_allowed_before_shipping(self, status):
        assert can_cancel(status) == (True, "")

    @pytest.mark.parametrize(
        ("status", "reason"),
        [
            (
                OrderStatus.SHIPPED,
                "Order has already been shipped and cannot be cancelled online.",
            ),
            (
                OrderStatus.DELIVERED,
                "Order has already been delivered. Please use the returns process.",
            ),
            (OrderStatus.CANCELLED, "Order has already been cancelled."),
        ],
    )
    def test_refused_with_reason(self, status, reason):
        assert can_cancel(status) == (False, reason)

    def test_every_status_is_decided(self):
        for status in OrderStatus.values:
            allowed, reason = can_cancel(status)
            assert allowed == (status in {"pending", "confirmed", "processing"})
            assert allowed or reason
