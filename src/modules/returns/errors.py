"""Return workflow errors."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.errors import DomainError


@dataclass(frozen=True)
class ReturnWindowExpired(DomainError):
    """The post-delivery return window has closed."""

    @classmethod
    def for_days(cls, window_days: int) -> ReturnWindowExpired:
        return cls(
            message=(
                f"The return window has expired. Returns must be requested "
                f"within {window_days} days of delivery."
            ),
            details={"window_days": window_days},
        )
