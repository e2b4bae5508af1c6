"""
Author use cases.
"""

from datetime import datetime
from typing import List, Optional, Tuple

import structlog

from catalog.database import Database, RecordNotFound, StoreError
from catalog.entities import Author
from catalog.errors import InfrastructureError, NotFoundError
from catalog.repository import AuthorRepository
from catalog.schemas import AuthorResponse
from catalog.search import AuthorFilter, PageRequest
from catalog.usecases.base import commit

logger = structlog.get_logger(__name__)


class AuthorUseCase:
    """Search, read, create, update and delete authors."""

    def __init__(self, database: Database, repository: AuthorRepository):
        self.database = database
        self.repository = repository

    async def get_many(
        self, filters: AuthorFilter, page: PageRequest
    ) -> Tuple[List[AuthorResponse], int]:
        """
        Search authors.

        Args:
            filters: Name substring and birthdate range
            page: Page to return

        Returns:
            Tuple of (authors on the page, total matching authors)
        """
        async with self.database.transaction(read_only=True, with_reader=True) as tx:
            try:
                authors, total = await self.repository.search(tx, filters, page)
            except StoreError as e:
                raise InfrastructureError("failed to get many authors") from e

            await commit(tx)

        return [AuthorResponse.from_entity(author) for author in authors], total

    async def get(self, author_id: int) -> AuthorResponse:
        async with self.database.transaction(read_only=True) as tx:
            author = await self._find(tx, author_id, not_found="author not found")
            await commit(tx)

        return AuthorResponse.from_entity(author)

    async def create(self, name: str, birthdate: datetime) -> AuthorResponse:
        async with self.database.transaction() as tx:
            author = Author(name=name, birthdate=birthdate)

            try:
                await self.repository.create(tx, author)
            except StoreError as e:
                raise InfrastructureError("failed to create new author") from e

            await commit(tx)

        logger.info("Author created", author_id=author.id)
        return AuthorResponse.from_entity(author)

    async def update(
        self,
        author_id: int,
        name: Optional[str] = None,
        birthdate: Optional[datetime] = None,
    ) -> AuthorResponse:
        """
        Merge the supplied fields into an existing author.

        An empty name counts as not supplied and keeps the stored value.
        """
        async with self.database.transaction() as tx:
            author = await self._find(tx, author_id, not_found="id not found")

            if name:
                author.name = name
            if birthdate is not None:
                author.birthdate = birthdate

            try:
                await self.repository.update(tx, author)
            except StoreError as e:
                raise InfrastructureError("failed to update author") from e

            await commit(tx)

        return AuthorResponse.from_entity(author)

    async def delete(self, author_id: int) -> int:
        """Delete an author and return its id. Books referencing it are left as they are."""
        async with self.database.transaction() as tx:
            author = await self._find(tx, author_id, not_found="id not found")

            try:
                await self.repository.delete(tx, author)
            except StoreError as e:
                raise InfrastructureError("failed to delete author") from e

            await commit(tx)

        logger.info("Author deleted", author_id=author_id)
        return author_id

    async def _find(self, tx, author_id: int, not_found: str) -> Author:
        try:
            return await self.repository.find_by_id(tx, author_id)
        except RecordNotFound as e:
            raise NotFoundError(not_found) from e
        except StoreError as e:
            raise InfrastructureError("failed to find author data by id") from e
