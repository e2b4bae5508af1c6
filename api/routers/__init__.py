"""HTTP routers, one per resource."""

from api.routers import authors, books, users

__all__ = ["authors", "books", "users"]
