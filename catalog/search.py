"""
Search engine for the catalog collections.

Filters turn optional criteria into SQL predicates. ``run_search`` then runs
the page query and the count query concurrently; both must succeed.
"""

import asyncio
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

import structlog
from sqlalchemy import Select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.database import StoreError, Transaction
from catalog.entities import Author, Book

logger = structlog.get_logger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page number and a page size."""

    page: int = DEFAULT_PAGE
    size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def of(cls, page: Optional[int], size: Optional[int]) -> "PageRequest":
        """Build a page request, replacing non-positive values with defaults."""
        return cls(
            page=page if page and page > 0 else DEFAULT_PAGE,
            size=size if size and size > 0 else DEFAULT_PAGE_SIZE,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size


def total_pages(total_items: int, size: int) -> int:
    """Number of pages needed to hold ``total_items`` at ``size`` per page."""
    return math.ceil(total_items / size)


def _contains(value: Optional[str]) -> bool:
    return value is not None and value != ""


@dataclass(frozen=True)
class AuthorFilter:
    """Author criteria. Name is a case-insensitive substring; dates are inclusive."""

    name: Optional[str] = None
    birthdate_start: Optional[datetime] = None
    birthdate_end: Optional[datetime] = None

    def predicates(self) -> List:
        predicates = []
        if _contains(self.name):
            predicates.append(Author.name.icontains(self.name, autoescape=True))
        if self.birthdate_start is not None:
            predicates.append(Author.birthdate >= self.birthdate_start)
        if self.birthdate_end is not None:
            predicates.append(Author.birthdate <= self.birthdate_end)
        return predicates


@dataclass(frozen=True)
class BookFilter:
    """Book criteria, including criteria on the joined author."""

    title: Optional[str] = None
    isbn: Optional[str] = None
    author_id: Optional[int] = None
    author_name: Optional[str] = None

    def predicates(self) -> List:
        predicates = []
        if _contains(self.title):
            predicates.append(Book.title.icontains(self.title, autoescape=True))
        if _contains(self.isbn):
            predicates.append(Book.isbn.icontains(self.isbn, autoescape=True))
        if self.author_id is not None:
            predicates.append(Author.id == self.author_id)
        if _contains(self.author_name):
            predicates.append(Author.name.icontains(self.author_name, autoescape=True))
        return predicates


async def _fetch_page(session: AsyncSession, statement: Select) -> List:
    result = await session.execute(statement)
    return list(result.scalars().all())


async def _count(session: AsyncSession, statement: Select) -> int:
    result = await session.execute(statement)
    return result.scalar_one()


async def run_search(
    tx: Transaction,
    statement: Select,
    count_statement: Select,
    page: PageRequest,
) -> Tuple[List, int]:
    """
    Fetch one page of ``statement`` and count all rows of ``count_statement``.

    The two queries run concurrently on separate connections. The first
    failure cancels the other query and fails the whole search.

    Args:
        tx: Transaction owning the page query
        statement: Ordered SELECT of the entities
        count_statement: SELECT COUNT over the same predicates
        page: Page to fetch

    Returns:
        Tuple of (entities on the page, total matching rows)

    Raises:
        StoreError: Either query failed
    """
    try:
        async with tx.reader() as reader:
            tasks = (
                asyncio.ensure_future(
                    _fetch_page(tx.session, statement.offset(page.offset).limit(page.limit))
                ),
                asyncio.ensure_future(_count(reader, count_statement)),
            )
            try:
                items, total = await asyncio.gather(*tasks)
            finally:
                # Never leave a query running on a session about to close
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "Failed to search entities from database",
            page=page.page,
            size=page.size,
            error=str(e),
        )
        raise StoreError("failed to search entities") from e

    return items, total
