"""
Outbound data shapes returned by the use cases.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from catalog.entities import Author, Book, User


def as_utc(value: datetime) -> datetime:
    """Express a timestamp in UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AuthorResponse(BaseModel):
    """Author as returned by the API."""
    id: int = Field(..., description="Author identifier")
    name: str = Field(..., description="Author name")
    birthdate: datetime = Field(..., description="Author birthdate")

    @classmethod
    def from_entity(cls, author: Author) -> "AuthorResponse":
        return cls(id=author.id, name=author.name, birthdate=as_utc(author.birthdate))


class BookResponse(BaseModel):
    """Book as returned by the API, with the joined author name."""
    id: int = Field(..., description="Book identifier")
    title: str = Field(..., description="Book title")
    isbn: str = Field(..., description="ISBN")
    author_id: int = Field(..., description="Author identifier")
    author_name: str = Field("", description="Author name")

    @classmethod
    def from_entity(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            isbn=book.isbn,
            author_id=book.author_id,
            author_name=book.author.name if book.author is not None else "",
        )


class UserResponse(BaseModel):
    """User identity. The password hash is never part of it."""
    id: int = Field(..., description="User identifier")
    username: str = Field(..., description="Username")

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username)


class LoginResponse(UserResponse):
    """User identity plus a freshly issued identity token."""
    token: str = Field(..., description="Bearer token")


class DeletedResponse(BaseModel):
    """Identifier of a deleted row."""
    id: int = Field(..., description="Deleted identifier")
