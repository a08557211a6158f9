"""Wallet API views.

``customer_id`` query parameters let admins and support agents look at any
wallet; everyone else always gets their own.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import Actor
from modules.core.pagination import StandardResultsSetPagination
from modules.core.responses import error_response, result_response
from modules.wallet.dtos import AdminAdjustmentDTO
from modules.wallet.serializers import (
    AdminAdjustmentSerializer,
    CustomerWalletSerializer,
    WalletTransactionSerializer,
)
from modules.wallet.services import get_wallet_ledger
from shared.domain.dto import parse_dto


class WalletViewSet(GenericViewSet):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._ledger = get_wallet_ledger()

    def _target(self, request: Request, actor: Actor) -> str:
        return request.query_params.get("customer_id") or actor.id

    def list(self, request: Request) -> Response:
        """GET /api/v1/wallet/"""
        actor = Actor.from_user(request.user)
        result = self._ledger.get_wallet(self._target(request, actor), actor)
        return result_response(result, self._wallet_data)

    def _wallet_data(self, wallet) -> dict:
        data = CustomerWalletSerializer(wallet).data
        data["balance"] = str(self._ledger.get_balance(wallet.customer_id))
        return data

    @action(detail=False, methods=["get"])
    def transactions(self, request: Request) -> Response:
        """GET /api/v1/wallet/transactions/"""
        actor = Actor.from_user(request.user)
        result = self._ledger.list_transactions(self._target(request, actor), actor)
        if not result.ok:
            return error_response(result.error)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(result.value, request)
        serializer = WalletTransactionSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=["post"])
    def adjustments(self, request: Request) -> Response:
        """POST /api/v1/wallet/adjustments/ (admin)."""
        serializer = AdminAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        parsed = parse_dto(AdminAdjustmentDTO, serializer.validated_data)
        if not parsed.ok:
            return error_response(parsed.error)

        result = self._ledger.adjust_balance(parsed.value, Actor.from_user(request.user))
        return result_response(
            result,
            lambda entry: WalletTransactionSerializer(entry).data,
            success_status=status.HTTP_201_CREATED,
        )
