"""Boundary helper turning Pydantic validation failures into ``Err`` values."""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from shared.domain.errors import ValidationFailed
from shared.domain.result import Err, Ok, Result

D = TypeVar("D", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


def parse_dto(dto_class: Type[D], data: Mapping[str, Any]) -> Result[D]:
    """Validate *data* into *dto_class*; failures become ``ValidationFailed``."""
    try:
        return Ok(dto_class.model_validate(dict(data)))
    except PydanticValidationError as exc:
        errors = [
            {
                "attr": ".".join(str(part) for part in error["loc"]) or None,
                "detail": _clean_message(error["msg"]),
            }
            for error in exc.errors()
        ]
        first = errors[0]
        return Err(
            ValidationFailed(
                message=first["detail"],
                details={"attr": first["attr"], "errors": errors},
            )
        )


def _clean_message(message: str) -> str:
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX):]
    return message
