"""Translate typed service outcomes into HTTP responses.

Error bodies use the same shape ``drf-standardized-errors`` produces for
framework exceptions, so clients parse one format.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from rest_framework import status
from rest_framework.response import Response

from shared.domain.errors import DomainError
from shared.domain.result import Result

ERROR_STATUS: Dict[str, int] = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "unauthorized": status.HTTP_403_FORBIDDEN,
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "not_cancellable": status.HTTP_409_CONFLICT,
    "return_window_expired": status.HTTP_409_CONFLICT,
    "concurrent_modification": status.HTTP_409_CONFLICT,
    "refund_already_issued": status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    attr = error.details.get("attr") if error.details else None
    error_type = "validation_error" if error.code == "validation_error" else "client_error"
    return Response(
        {
            "type": error_type,
            "errors": [{"code": error.code, "detail": error.message, "attr": attr}],
        },
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def result_response(
    result: Result,
    render: Callable[[Any], Any],
    success_status: int = status.HTTP_200_OK,
) -> Response:
    """Render ``Ok`` values with *render*; map ``Err`` to an error body."""
    if not result.ok:
        return error_response(result.error)
    return Response(render(result.value), status=success_status)
