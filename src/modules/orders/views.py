"""Order API views.

Exposes ``OrderService`` and ``CancellationService`` via DRF ViewSets.
Services return ``Ok``/``Err`` values; ``result_response`` turns them into
HTTP responses so views hold no business rules.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import Actor
from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import error_response, result_response
from modules.orders.cancellation import get_cancellation_service
from modules.orders.dtos import CancelOrderDTO, ShipOrderDTO, UpdateStatusDTO
from modules.orders.filters import CancellationLogFilter, OrderFilter
from modules.orders.models import CancellationLog, Order
from modules.orders.serializers import (
    CancellationLogSerializer,
    CancelOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    SellerCancellationStatsSerializer,
    ShipOrderSerializer,
    UpdateStatusSerializer,
)
from modules.orders.services import get_order_service
from modules.returns.services import get_return_service
from shared.domain.dto import parse_dto

MUTATING_ACTIONS = {"partial_update", "ship", "cancel"}


def _dump(model) -> dict:
    return model.model_dump(mode="json")


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "tracking_id"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = get_order_service()
        self._cancellation = get_cancellation_service()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action in MUTATING_ACTIONS:
            throttle_scope = "order_transitions"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_orders(self._actor())

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/ (scoped to the caller's role)."""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        result = self._service.get_order(pk, self._actor())
        return result_response(result, lambda order: OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def transitions(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/transitions/"""
        result = self._service.available_transitions(pk, self._actor())
        return result_response(result, lambda statuses: {"statuses": statuses})

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Confirm, process or deliver.  Shipping and cancelling have their
        own actions because they need extra input.
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parsed = parse_dto(UpdateStatusDTO, serializer.validated_data)
        if not parsed.ok:
            return error_response(parsed.error)

        result = self._service.update_status(pk, parsed.value, self._actor())
        return result_response(result, lambda order: OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Shipment
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"])
    def ship(self, request: Request, pk: str | None = None) -> Response:
        """GET: shipping dialog data.  POST: hand over to the courier."""
        actor = self._actor()
        if request.method == "GET":
            return result_response(self._service.begin_shipment(pk, actor), _dump)

        serializer = ShipOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parsed = parse_dto(ShipOrderDTO, serializer.validated_data)
        if not parsed.ok:
            return error_response(parsed.error)

        result = self._service.ship_order(pk, parsed.value, actor)
        return result_response(result, lambda order: OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def cancellation(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/cancellation/ (eligibility + reasons)."""
        return result_response(self._cancellation.eligibility(pk, self._actor()), _dump)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parsed = parse_dto(CancelOrderDTO, serializer.validated_data)
        if not parsed.ok:
            return error_response(parsed.error)

        result = self._cancellation.cancel_order(pk, parsed.value, self._actor())
        return result_response(
            result,
            lambda outcome: {
                "order": OrderSerializer(outcome.order).data,
                "refund_amount": str(outcome.refund_amount),
                "refund_processed": outcome.refund_processed,
            },
        )

    # ------------------------------------------------------------------
    # Returns pre-check
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"], url_path="return-eligibility")
    def return_eligibility(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/return-eligibility/"""
        result = get_return_service().return_eligibility(pk, self._actor())
        return result_response(result, _dump)


class CancellationLogViewSet(GenericViewSet):
    """Read-only cancellation audit trail, scoped by role."""

    queryset = CancellationLog.objects.all()
    filterset_class = CancellationLogFilter
    ordering_fields = ["created_at", "refund_amount"]
    ordering = ["-created_at"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._cancellation = get_cancellation_service()

    def list(self, request: Request) -> Response:
        """GET /api/v1/cancellations/"""
        result = self._cancellation.list_cancellation_logs(Actor.from_user(request.user))
        queryset = self.filter_queryset(result.value)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = CancellationLogSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path="seller-stats")
    def seller_stats(self, request: Request) -> Response:
        """GET /api/v1/cancellations/seller-stats/ (admin only)."""
        result = self._cancellation.seller_cancellation_stats(Actor.from_user(request.user))
        return result_response(
            result,
            lambda rows: SellerCancellationStatsSerializer(rows, many=True).data,
            success_status=status.HTTP_200_OK,
        )
