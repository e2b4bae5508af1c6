"""Use case orchestrators: one operation per CRUD action."""

from .author import AuthorUseCase
from .book import BookUseCase
from .user import UserUseCase

__all__ = ["AuthorUseCase", "BookUseCase", "UserUseCase"]
