"""
Repositories for the catalog entities.

``EntityStore`` is the one generic persistence helper; each concrete
repository holds one for its entity and adds its own queries on top.
"""

from typing import Callable, Generic, List, Optional, Tuple, Type, TypeVar

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import contains_eager

from catalog.database import DuplicateKey, RecordNotFound, StoreError, Transaction, is_unique_violation
from catalog.entities import Author, Base, Book, User
from catalog.search import AuthorFilter, BookFilter, PageRequest, run_search

logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=Base)


class EntityStore(Generic[T]):
    """Create/update/delete/find operations for one entity class."""

    def __init__(self, model: Type[T], query: Optional[Callable[[], Select]] = None):
        self.model = model
        self.entity_name = model.__tablename__
        self._query = query or (lambda: select(model))

    def query(self) -> Select:
        """Base SELECT used by the find operations."""
        return self._query()

    async def create(self, tx: Transaction, entity: T) -> T:
        tx.ensure_writable()
        tx.session.add(entity)
        await self._flush(tx, "create")
        return entity

    async def update(self, tx: Transaction, entity: T) -> T:
        """Save the entity's current state over the stored row."""
        tx.ensure_writable()
        tx.session.add(entity)
        await self._flush(tx, "update")
        return entity

    async def delete(self, tx: Transaction, entity: T) -> None:
        tx.ensure_writable()
        try:
            await tx.session.delete(entity)
        except SQLAlchemyError as e:
            logger.error("Failed to delete entity from database", entity=self.entity_name, error=str(e))
            raise StoreError(f"failed to delete {self.entity_name}") from e
        await self._flush(tx, "delete")

    async def find_by_id(self, tx: Transaction, entity_id: int) -> T:
        """
        Find one entity by primary key.

        Raises:
            RecordNotFound: No row has this id (not logged)
            StoreError: Any other failure
        """
        statement = self.query().where(self.model.id == entity_id)
        return await self.find_one(tx, statement)

    async def find_one(self, tx: Transaction, statement: Select) -> T:
        try:
            result = await tx.session.execute(statement)
            entity = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Failed to find entity from database", entity=self.entity_name, error=str(e))
            raise StoreError(f"failed to find {self.entity_name}") from e

        if entity is None:
            raise RecordNotFound(self.entity_name)
        return entity

    async def find_all(self, tx: Transaction) -> List[T]:
        try:
            result = await tx.session.execute(self.query().order_by(self.model.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Failed to find entities from database", entity=self.entity_name, error=str(e))
            raise StoreError(f"failed to find {self.entity_name}") from e

    async def _flush(self, tx: Transaction, operation: str) -> None:
        try:
            await tx.session.flush()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.warning(
                    "Unique constraint rejected entity",
                    entity=self.entity_name,
                    operation=operation,
                    error=str(e.orig),
                )
                raise DuplicateKey(f"duplicate {self.entity_name}") from e
            logger.error(
                "Integrity error writing entity to database",
                entity=self.entity_name,
                operation=operation,
                error=str(e),
            )
            raise StoreError(f"failed to {operation} {self.entity_name}") from e
        except SQLAlchemyError as e:
            logger.error(
                "Failed to write entity to database",
                entity=self.entity_name,
                operation=operation,
                error=str(e),
            )
            raise StoreError(f"failed to {operation} {self.entity_name}") from e


class AuthorRepository:
    """Authors: generic persistence plus filtered search."""

    def __init__(self):
        self.entities: EntityStore[Author] = EntityStore(Author)

    async def create(self, tx: Transaction, author: Author) -> Author:
        return await self.entities.create(tx, author)

    async def update(self, tx: Transaction, author: Author) -> Author:
        return await self.entities.update(tx, author)

    async def delete(self, tx: Transaction, author: Author) -> None:
        await self.entities.delete(tx, author)

    async def find_by_id(self, tx: Transaction, author_id: int) -> Author:
        return await self.entities.find_by_id(tx, author_id)

    async def find_all(self, tx: Transaction) -> List[Author]:
        return await self.entities.find_all(tx)

    async def search(
        self, tx: Transaction, filters: AuthorFilter, page: PageRequest
    ) -> Tuple[List[Author], int]:
        """Page of matching authors in insertion order, plus the match count."""
        predicates = filters.predicates()
        statement = select(Author).where(*predicates).order_by(Author.id)
        count_statement = select(func.count(Author.id)).where(*predicates)
        return await run_search(tx, statement, count_statement, page)


def _books_with_author() -> Select:
    # Outer join keeps books whose author row was deleted
    return select(Book).outerjoin(Book.author).options(contains_eager(Book.author))


class BookRepository:
    """Books: generic persistence, always loaded together with their author."""

    def __init__(self):
        self.entities: EntityStore[Book] = EntityStore(Book, query=_books_with_author)

    async def create(self, tx: Transaction, book: Book) -> Book:
        return await self.entities.create(tx, book)

    async def update(self, tx: Transaction, book: Book) -> Book:
        return await self.entities.update(tx, book)

    async def delete(self, tx: Transaction, book: Book) -> None:
        await self.entities.delete(tx, book)

    async def find_by_id(self, tx: Transaction, book_id: int) -> Book:
        return await self.entities.find_by_id(tx, book_id)

    async def find_all(self, tx: Transaction) -> List[Book]:
        return await self.entities.find_all(tx)

    async def search(
        self, tx: Transaction, filters: BookFilter, page: PageRequest
    ) -> Tuple[List[Book], int]:
        """Page of matching books joined with their author, plus the match count."""
        predicates = filters.predicates()
        statement = _books_with_author().where(*predicates).order_by(Book.id)
        count_statement = (
            select(func.count(Book.id)).select_from(Book).outerjoin(Book.author).where(*predicates)
        )
        return await run_search(tx, statement, count_statement, page)


class UserRepository:
    """Users: generic persistence plus lookup by username."""

    def __init__(self):
        self.entities: EntityStore[User] = EntityStore(User)

    async def create(self, tx: Transaction, user: User) -> User:
        return await self.entities.create(tx, user)

    async def find_by_id(self, tx: Transaction, user_id: int) -> User:
        return await self.entities.find_by_id(tx, user_id)

    async def find_by_username(self, tx: Transaction, username: str) -> User:
        statement = select(User).where(User.username == username)
        return await self.entities.find_one(tx, statement)
