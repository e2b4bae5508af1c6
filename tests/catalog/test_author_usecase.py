"""
Unit tests for the author use cases.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from catalog.database import StoreError
from catalog.errors import InfrastructureError, NotFoundError
from catalog.repository import AuthorRepository
from catalog.search import AuthorFilter, PageRequest
from catalog.usecases import AuthorUseCase


class TestAuthorUseCase:
    """Test cases for AuthorUseCase."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, author_usecase, sample_birthdate):
        created = await author_usecase.create("Stephen King", sample_birthdate)

        fetched = await author_usecase.get(created.id)

        assert fetched == created
        assert fetched.birthdate == sample_birthdate

    @pytest.mark.asyncio
    async def test_birthdate_is_returned_in_utc(self, author_usecase):
        """Offsets are normalised; the instant is preserved."""
        local = datetime(1960, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        created = await author_usecase.create("Somebody", local)

        fetched = await author_usecase.get(created.id)
        assert fetched.birthdate == datetime(1960, 1, 1, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_get_missing(self, author_usecase):
        with pytest.raises(NotFoundError) as exc_info:
            await author_usecase.get(999)

        assert exc_info.value.message == "author not found"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_get_many_paginates(self, author_usecase, sample_birthdate):
        for i in range(12):
            await author_usecase.create(f"Author {i}", sample_birthdate)

        items, total = await author_usecase.get_many(AuthorFilter(), PageRequest.of(2, 5))

        assert total == 12
        assert [a.name for a in items] == ["Author 5", "Author 6", "Author 7", "Author 8", "Author 9"]

    @pytest.mark.asyncio
    async def test_update_merges_supplied_fields(self, author_usecase, sample_birthdate):
        created = await author_usecase.create("Old Name", sample_birthdate)
        new_birthdate = datetime(1950, 5, 5, tzinfo=timezone.utc)

        renamed = await author_usecase.update(created.id, name="New Name")
        assert renamed.name == "New Name"
        assert renamed.birthdate == sample_birthdate

        redated = await author_usecase.update(created.id, name="", birthdate=new_birthdate)
        assert redated.name == "New Name"
        assert redated.birthdate == new_birthdate

        assert await author_usecase.get(created.id) == redated

    @pytest.mark.asyncio
    async def test_update_missing(self, author_usecase):
        with pytest.raises(NotFoundError, match="id not found"):
            await author_usecase.update(42, name="Nobody")

    @pytest.mark.asyncio
    async def test_delete(self, author_usecase, sample_birthdate):
        created = await author_usecase.create("Short Lived", sample_birthdate)

        assert await author_usecase.delete(created.id) == created.id

        with pytest.raises(NotFoundError):
            await author_usecase.get(created.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, author_usecase):
        with pytest.raises(NotFoundError, match="id not found"):
            await author_usecase.delete(7)

    @pytest.mark.asyncio
    async def test_store_failure_is_infrastructure_error(self, database):
        repository = AsyncMock(spec=AuthorRepository)
        repository.search.side_effect = StoreError("failed to search entities")
        usecase = AuthorUseCase(database, repository)

        with pytest.raises(InfrastructureError) as exc_info:
            await usecase.get_many(AuthorFilter(), PageRequest.of(1, 10))

        assert exc_info.value.message == "failed to get many authors"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_failed_create_is_not_persisted(self, database, sample_birthdate):
        repository = AuthorRepository()
        failing = AsyncMock(spec=AuthorRepository)
        failing.create.side_effect = StoreError("failed to create authors")
        usecase = AuthorUseCase(database, failing)

        with pytest.raises(InfrastructureError, match="failed to create new author"):
            await usecase.create("Lost", sample_birthdate)

        async with database.transaction(read_only=True) as tx:
            assert await repository.find_all(tx) == []
