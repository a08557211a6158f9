"""Return request repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IStatusRepository

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.returns.models import ReturnRequest


class IReturnRepository(IStatusRepository["ReturnRequest"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> ReturnRequest:
        """Insert a new request in ``return_requested``."""

    @abstractmethod
    def current_status(self, id: Any) -> Optional[str]:
        """Status as stored right now, bypassing any loaded snapshot."""

    @abstractmethod
    def has_open_return(self, order_item_id: Any, exclude_id: Any = None) -> bool:
        """Whether a non-rejected request, other than *exclude_id*, exists for the line item."""

    @abstractmethod
    def list_for_actor(self, actor: Actor, filters: Optional[Dict[str, Any]] = None) -> Any:
        """Requests visible to *actor*."""
