"""
SQLAlchemy models for the catalog.

Tables are created if absent at startup; there is no migration layer.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator


class Base(AsyncAttrs, declarative_base()):
    """Abstract base class for all ORM models."""

    __abstract__ = True


class UTCDateTime(TypeDecorator):
    """Timestamp stored as naive UTC and loaded back as timezone-aware UTC.

    SQLite keeps no offset, so aware values are converted to UTC before
    binding. Naive values are assumed to already be UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Author(Base):
    """A book author. Referenced by ``Book.author_id``."""

    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    birthdate = Column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<Author id={self.id!r} name={self.name!r}>"


class Book(Base):
    """A book. The author name is read through a join, never stored here."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    isbn = Column(String(32), nullable=False, unique=True)
    author_id = Column(Integer, ForeignKey("authors.id"), nullable=False, index=True)

    # Always loaded explicitly (joined) by the repository
    author = relationship(Author, lazy="raise")

    def __repr__(self) -> str:
        return f"<Book id={self.id!r} isbn={self.isbn!r}>"


class User(Base):
    """An API user. ``password`` only ever holds a hash."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id!r} username={self.username!r}>"
