"""
Book use cases.

A book always references an existing author; the reference is checked here,
inside the same transaction as the write.
"""

from typing import List, Optional, Tuple

import structlog

from catalog.database import Database, DuplicateKey, RecordNotFound, StoreError, Transaction
from catalog.entities import Author, Book
from catalog.errors import DuplicateError, InfrastructureError, NotFoundError
from catalog.repository import AuthorRepository, BookRepository
from catalog.schemas import BookResponse
from catalog.search import BookFilter, PageRequest
from catalog.usecases.base import commit

logger = structlog.get_logger(__name__)


class BookUseCase:
    """Search, read, create, update and delete books."""

    def __init__(
        self,
        database: Database,
        repository: BookRepository,
        author_repository: AuthorRepository,
    ):
        self.database = database
        self.repository = repository
        self.author_repository = author_repository

    async def get_many(
        self, filters: BookFilter, page: PageRequest
    ) -> Tuple[List[BookResponse], int]:
        """
        Search books joined with their authors.

        Args:
            filters: Title/ISBN/author name substrings and exact author id
            page: Page to return

        Returns:
            Tuple of (books on the page, total matching books)
        """
        async with self.database.transaction(read_only=True, with_reader=True) as tx:
            try:
                books, total = await self.repository.search(tx, filters, page)
            except StoreError as e:
                raise InfrastructureError("failed to get many books") from e

            await commit(tx)

        return [BookResponse.from_entity(book) for book in books], total

    async def get(self, book_id: int) -> BookResponse:
        async with self.database.transaction(read_only=True) as tx:
            book = await self._find(tx, book_id, not_found="book not found")
            await commit(tx)

        return BookResponse.from_entity(book)

    async def create(self, title: str, isbn: str, author_id: int) -> BookResponse:
        """
        Create a book for an existing author.

        Raises:
            NotFoundError: "author not found" when the author does not exist
            DuplicateError: "duplicate isbn" when the ISBN is taken
        """
        async with self.database.transaction() as tx:
            author = await self._find_author(tx, author_id, not_found="author not found")

            book = Book(title=title, isbn=isbn, author_id=author.id, author=author)

            try:
                await self.repository.create(tx, book)
            except DuplicateKey as e:
                raise DuplicateError("duplicate isbn") from e
            except StoreError as e:
                raise InfrastructureError("failed to create new book") from e

            await commit(tx)

        logger.info("Book created", book_id=book.id, author_id=author.id)
        return BookResponse.from_entity(book)

    async def update(
        self,
        book_id: int,
        title: Optional[str] = None,
        isbn: Optional[str] = None,
        author_id: Optional[int] = None,
    ) -> BookResponse:
        """
        Merge the supplied fields into an existing book.

        Empty title and ISBN count as not supplied. A new author id must
        reference an existing author.
        """
        async with self.database.transaction() as tx:
            book = await self._find(tx, book_id, not_found="id not found")

            if title:
                book.title = title
            if isbn:
                book.isbn = isbn
            if author_id is not None:
                author = await self._find_author(tx, author_id, not_found="id not found")
                book.author_id = author.id
                book.author = author

            try:
                await self.repository.update(tx, book)
            except DuplicateKey as e:
                raise DuplicateError("duplicate isbn") from e
            except StoreError as e:
                raise InfrastructureError("failed to update book data") from e

            await commit(tx)

        return BookResponse.from_entity(book)

    async def delete(self, book_id: int) -> int:
        async with self.database.transaction() as tx:
            book = await self._find(tx, book_id, not_found="id not found")

            try:
                await self.repository.delete(tx, book)
            except StoreError as e:
                raise InfrastructureError("failed to delete book") from e

            await commit(tx)

        logger.info("Book deleted", book_id=book_id)
        return book_id

    async def _find(self, tx: Transaction, book_id: int, not_found: str) -> Book:
        try:
            return await self.repository.find_by_id(tx, book_id)
        except RecordNotFound as e:
            raise NotFoundError(not_found) from e
        except StoreError as e:
            raise InfrastructureError("failed to find book data by id") from e

    async def _find_author(self, tx: Transaction, author_id: int, not_found: str) -> Author:
        try:
            return await self.author_repository.find_by_id(tx, author_id)
        except RecordNotFound as e:
            raise NotFoundError(not_found) from e
        except StoreError as e:
            raise InfrastructureError("failed to find author data by id") from e
