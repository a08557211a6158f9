"""Return request API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import Actor
from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import error_response, result_response
from modules.returns.dtos import (
    AdminOverrideDTO,
    CreateReturnDTO,
    ItemShippedDTO,
    SellerResponseDTO,
)
from modules.returns.filters import ReturnRequestFilter
from modules.returns.models import ReturnRequest
from modules.returns.serializers import (
    AdminOverrideSerializer,
    CreateReturnSerializer,
    ItemShippedSerializer,
    ReturnRequestSerializer,
    SellerResponseSerializer,
)
from modules.returns.services import get_return_service
from shared.domain.dto import parse_dto


def _render(ret: ReturnRequest) -> dict:
    return ReturnRequestSerializer(ret).data


class ReturnRequestViewSet(GenericViewSet):
    """Return requests: customers create, sellers decide, admins refund."""

    queryset = ReturnRequest.objects.all()
    filterset_class = ReturnRequestFilter
    ordering_fields = ["created_at", "refund_amount", "status"]
    ordering = ["-created_at"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = get_return_service()

    def _actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    def _parse(self, serializer_class, dto_class, request: Request):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return parse_dto(dto_class, serializer.validated_data)

    def get_queryset(self):
        return self._service.list_returns(self._actor())

    def list(self, request: Request) -> Response:
        """GET /api/v1/returns/"""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = ReturnRequestSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/returns/{pk}/"""
        return result_response(self._service.get_return(pk, self._actor()), _render)

    def create(self, request: Request) -> Response:
        """POST /api/v1/returns/"""
        parsed = self._parse(CreateReturnSerializer, CreateReturnDTO, request)
        if not parsed.ok:
            return error_response(parsed.error)
        result = self._service.create_return(parsed.value, self._actor())
        return result_response(result, _render, success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def review(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/review/ (admin picks the request up)."""
        return result_response(self._service.mark_under_review(pk, self._actor()), _render)

    @action(detail=True, methods=["post"])
    def respond(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/respond/ (seller approve/reject)."""
        parsed = self._parse(SellerResponseSerializer, SellerResponseDTO, request)
        if not parsed.ok:
            return error_response(parsed.error)
        return result_response(
            self._service.seller_respond(pk, parsed.value, self._actor()), _render
        )

    @action(detail=True, methods=["post"])
    def ship(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/ship/ (customer sends the item back)."""
        parsed = self._parse(ItemShippedSerializer, ItemShippedDTO, request)
        if not parsed.ok:
            return error_response(parsed.error)
        return result_response(
            self._service.mark_item_shipped(pk, parsed.value, self._actor()), _render
        )

    @action(detail=True, methods=["post"])
    def receive(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/receive/ (seller confirms receipt)."""
        return result_response(
            self._service.confirm_item_received(pk, self._actor()), _render
        )

    @action(detail=True, methods=["post"])
    def override(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/override/ (admin)."""
        parsed = self._parse(AdminOverrideSerializer, AdminOverrideDTO, request)
        if not parsed.ok:
            return error_response(parsed.error)
        return result_response(
            self._service.admin_override(pk, parsed.value, self._actor()), _render
        )

    @action(detail=True, methods=["post"])
    def refund(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/returns/{pk}/refund/ (admin).

        A repeated call answers 200 with ``issued: false``.
        """
        result = self._service.process_refund(pk, self._actor())
        return result_response(
            result,
            lambda issued: {"issued": issued, "already_issued": not issued},
        )
