"""
Relational store access: engine, connection pool and transaction lifecycle.

Every use case operation runs inside exactly one ``Transaction`` obtained from
``Database.transaction``. The success path commits explicitly; leaving the
block any other way rolls back.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from catalog.entities import Base
from utilities.config import AppConfig

logger = structlog.get_logger(__name__)

# Statements that make the current transaction read-only, per dialect
_READ_ONLY_STATEMENTS: Dict[str, str] = {
    "postgresql": "SET TRANSACTION READ ONLY",
}


class StoreError(Exception):
    """Opaque store failure. Already logged when raised."""


class DuplicateKey(StoreError):
    """A unique constraint rejected the write."""


class RecordNotFound(Exception):
    """The requested row does not exist."""


class Transaction:
    """
    A single unit of work bound to one session.

    A transaction opened with ``with_reader=True`` also holds a sibling
    read-only session, checked out together with the main one, for queries
    that must run concurrently with the main session's statement.
    """

    def __init__(
        self,
        database: "Database",
        session: AsyncSession,
        read_only: bool,
        reader_session: Optional[AsyncSession] = None,
    ):
        self.database = database
        self.session = session
        self.read_only = read_only
        self.reader_session = reader_session
        self.committed = False

    def ensure_writable(self) -> None:
        """Refuse writes through a read-only transaction."""
        if self.read_only:
            logger.error("Write attempted in read-only transaction")
            raise StoreError("transaction is read-only")

    async def commit(self) -> None:
        """Commit the transaction."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to commit transaction", error=str(e))
            raise StoreError("failed to commit transaction") from e
        self.committed = True

    async def rollback(self) -> None:
        """Roll back whatever the transaction has done so far."""
        await self.session.rollback()

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[AsyncSession]:
        """
        Yield the sibling read-only session reserved when the transaction began.

        Raises:
            StoreError: The transaction was opened without a reader
        """
        if self.reader_session is None:
            logger.error("Concurrent read attempted without a reserved reader")
            raise StoreError("transaction has no reader")
        yield self.reader_session


class Database:
    """
    Owns the async engine and session factory.

    The connection pool bounds the number of transactions in flight; when it
    is exhausted callers wait up to ``db_pool_timeout`` seconds. A transaction
    opened with a reader costs two connections.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.engine = create_async_engine(config.database_url, **self._engine_options())
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine initialized",
            dialect=self.engine.dialect.name,
            pool=type(self.engine.pool).__name__,
        )
        # Only one caller at a time may be between its first and second checkout
        self._pair_lock = asyncio.Lock()

    def _engine_options(self) -> Dict:
        """Pool settings for the configured store."""
        options = {"echo": self.config.db_echo}

        if ":memory:" in self.config.database_url:
            # A single shared connection keeps the in-memory database alive
            options["poolclass"] = StaticPool
            return options

        if self.config.is_sqlite():
            options["poolclass"] = AsyncAdaptedQueuePool

        options.update(
            {
                "pool_size": self.config.db_pool_size,
                "max_overflow": self.config.db_max_overflow,
                "pool_recycle": self.config.db_pool_recycle,
                "pool_timeout": self.config.db_pool_timeout,
                "pool_pre_ping": True,
            }
        )
        return options

    async def create_schema(self) -> None:
        """Create missing tables. Existing tables are left untouched."""
        try:
            async with self.engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error("Failed to create database schema", error=str(e))
            raise
        logger.info("Database schema ready", tables=sorted(Base.metadata.tables))

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database engine disposed")

    async def start_read_only(self, session: AsyncSession) -> None:
        """Mark the session's transaction read-only where the dialect allows it."""
        statement = _READ_ONLY_STATEMENTS.get(self.engine.dialect.name)
        if statement:
            await session.execute(text(statement))

    @asynccontextmanager
    async def transaction(self, read_only: bool = False, with_reader: bool = False) -> AsyncIterator[Transaction]:
        """
        Begin a transaction.

        Args:
            read_only: Disallow writes for the lifetime of the transaction
            with_reader: Also reserve a sibling read-only session. Both
                connections are checked out before the transaction is handed
                out, one pair at a time, so no caller holds a connection
                while waiting on the pool for its second one.

        Yields:
            Transaction that must be committed explicitly
        """
        session = self.session_factory()
        reader_session = self.session_factory() if with_reader else None
        tx = Transaction(self, session, read_only, reader_session)
        try:
            try:
                if reader_session is not None:
                    async with self._pair_lock:
                        await session.connection()
                        await reader_session.connection()
                    await self.start_read_only(reader_session)
                if read_only:
                    await self.start_read_only(session)
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to begin transaction",
                    read_only=read_only,
                    with_reader=with_reader,
                    error=str(e),
                )
                raise StoreError("failed to begin transaction") from e
            yield tx
        finally:
            if not tx.committed:
                try:
                    await tx.rollback()
                except SQLAlchemyError as e:
                    logger.warning("Failed to roll back transaction", error=str(e))
            if reader_session is not None:
                try:
                    await reader_session.rollback()
                except SQLAlchemyError as e:
                    logger.warning("Failed to roll back reader session", error=str(e))
                await reader_session.close()
            await session.close()

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}


def is_unique_violation(error: SQLAlchemyError) -> bool:
    """Tell whether an integrity error comes from a unique constraint."""
    orig: Optional[BaseException] = getattr(error, "orig", None)
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig if orig is not None else error).lower()
    return "unique constraint" in message or "duplicate key" in message
