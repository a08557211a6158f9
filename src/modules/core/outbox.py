"""Outbox helpers: persist domain events and publish pending ones."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

MAX_PUBLISH_RETRIES = 5


def record_events(events: Iterable[DomainEvent]) -> int:
    """Append events to the outbox within the caller's transaction."""
    count = 0
    for event in events:
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic=event.topic,
        )
        count += 1
    return count


def publish_pending_events(bus: IEventBus, batch_size: int = 100) -> Dict[str, int]:
    """Dispatch pending outbox rows to in-process handlers.

    Rows are claimed with ``select_for_update(skip_locked=True)`` so two
    workers never publish the same event.  Failed rows are retried until
    ``MAX_PUBLISH_RETRIES``.
    """
    published = failed = 0
    with transaction.atomic():
        rows = list(
            OutboxEvent.objects.select_for_update(skip_locked=True)
            .filter(
                status__in=[EventStatus.PENDING, EventStatus.FAILED],
                retry_count__lt=MAX_PUBLISH_RETRIES,
            )
            .order_by("created_at")[:batch_size]
        )
        for row in rows:
            event_class = bus.event_class(row.event_type)
            if event_class is None:
                row.mark_as_failed(f"No handler registered for {row.event_type}.")
                failed += 1
                continue
            event = deserialize_event(event_class, row)
            try:
                bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - handler failures are recorded on the row
                logger.warning(
                    "outbox.publish_failed",
                    event_type=row.event_type,
                    aggregate_id=row.aggregate_id,
                    error=str(exc),
                )
                row.mark_as_failed(str(exc))
                failed += 1
                continue
            row.mark_as_published()
            published += 1

    logger.info("outbox.batch_published", published=published, failed=failed)
    return {"published": published, "failed": failed}


def deserialize_event(event_class: type[DomainEvent], row: OutboxEvent) -> DomainEvent:
    data = row.payload or {}
    return event_class(
        aggregate_id=UUID(row.aggregate_id),
        payload=data.get("payload", {}),
        event_id=UUID(data["event_id"]) if data.get("event_id") else UUID(str(row.id)),
    )


def serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
