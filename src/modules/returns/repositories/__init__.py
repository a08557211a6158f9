"""Return request repositories package."""

from modules.returns.repositories.django_repository import ReturnDjangoRepository
from modules.returns.repositories.interfaces import IReturnRepository

__all__ = ["IReturnRepository", "ReturnDjangoRepository"]
