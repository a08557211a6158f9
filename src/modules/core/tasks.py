"""Async tasks for the core module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.outbox import publish_pending_events
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int | None = None):
    """Publish pending outbox events to the in-process handlers."""
    size = batch_size or settings.OUTBOX_BATCH_SIZE
    result = publish_pending_events(event_bus, batch_size=size)
    logger.info("outbox.task_completed", **result)
    return result
