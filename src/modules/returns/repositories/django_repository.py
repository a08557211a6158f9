"""Django ORM implementation of the return request repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db.models import QuerySet
from django.utils import timezone

from modules.core.actors import Actor, ActorRole
from modules.returns.constants import CLOSED_STATES
from modules.returns.models import ReturnRequest
from modules.returns.repositories.interfaces import IReturnRepository

logger = structlog.get_logger(__name__)


class ReturnDjangoRepository(IReturnRepository):
    def _base_queryset(self) -> QuerySet:
        return ReturnRequest.objects.select_related("order", "order_item")

    def create(self, data: Dict[str, Any]) -> ReturnRequest:
        return_request = ReturnRequest.objects.create(**data)
        logger.info(
            "returns.created",
            return_id=str(return_request.id),
            order_id=str(return_request.order_id),
        )
        return return_request

    def get_by_id(self, id: str) -> Optional[ReturnRequest]:
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def current_status(self, id: Any) -> Optional[str]:
        return ReturnRequest.objects.filter(id=id).values_list("status", flat=True).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_actor(self, actor: Actor, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self.list(filters)
        if actor.can_read_everything:
            return queryset
        if actor.role == ActorRole.SELLER:
            return queryset.filter(seller_id=actor.id)
        return queryset.filter(customer_id=actor.id)

    def has_open_return(self, order_item_id: Any, exclude_id: Any = None) -> bool:
        queryset = ReturnRequest.objects.filter(order_item_id=order_item_id).exclude(
            status__in=CLOSED_STATES
        )
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    def transition(
        self,
        id: Any,
        expected_status: str,
        new_status: str,
        fields: Optional[Dict[str, Any]] = None,
    ) -> Optional[ReturnRequest]:
        values = dict(fields or {})
        values["status"] = new_status
        values["updated_at"] = timezone.now()

        updated = ReturnRequest.objects.filter(id=id, status=expected_status).update(**values)
        log = logger.bind(return_id=str(id), expected_status=expected_status, new_status=new_status)
        if not updated:
            log.info("returns.transition_precondition_failed")
            return None

        log.info("returns.transitioned")
        return self.get_by_id(str(id))
