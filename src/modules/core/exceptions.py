"""API exception handling for infrastructure failures.

Domain failures never reach this layer (they are returned as ``Err``
values).  What does arrive here is either a DRF exception, formatted by
``drf-standardized-errors``, or the database being unreachable, which is
the one fatal-and-retry-later condition and is reported as 503.
"""

from __future__ import annotations

import structlog
from django.db import InterfaceError, OperationalError
from drf_standardized_errors.handler import ExceptionHandler
from rest_framework.exceptions import APIException

logger = structlog.get_logger(__name__)


class StorageUnavailable(APIException):
    status_code = 503
    default_detail = "The order store is temporarily unavailable. Please retry later."
    default_code = "storage_unavailable"


class OrderLifecycleExceptionHandler(ExceptionHandler):
    def convert_known_exceptions(self, exc: Exception) -> Exception:
        if isinstance(exc, (OperationalError, InterfaceError)):
            logger.error("storage.unavailable", error=str(exc))
            return StorageUnavailable()
        return super().convert_known_exceptions(exc)
