"""
Unit tests for registration, login and identity lookup.
"""

from unittest.mock import Mock

import pytest

from catalog.errors import BadRequestError, DuplicateError, InfrastructureError, NotFoundError
from catalog.repository import UserRepository
from catalog.security import PasswordHasher, TokenSigningError
from catalog.usecases import UserUseCase


class TestUserUseCase:
    """Test cases for UserUseCase."""

    @pytest.mark.asyncio
    async def test_register_hashes_password(self, user_usecase, database):
        user = await user_usecase.register("alice", "wonderland")

        assert user.username == "alice"
        async with database.transaction(read_only=True) as tx:
            stored = await UserRepository().find_by_username(tx, "alice")
        assert stored.password != "wonderland"
        assert PasswordHasher().verify("wonderland", stored.password)

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, user_usecase):
        await user_usecase.register("alice", "wonderland")

        with pytest.raises(DuplicateError, match="duplicate username"):
            await user_usecase.register("alice", "looking-glass")

    @pytest.mark.asyncio
    async def test_login_issues_verifiable_token(self, user_usecase, token_service):
        registered = await user_usecase.register("bob", "builder")

        result = await user_usecase.login("bob", "builder")

        assert result.id == registered.id
        assert result.username == "bob"
        claims = token_service.verify(result.token)
        assert claims.subject == "bob"
        assert claims.issuer == "bookshelf-server"
        assert claims.user_id == registered.id

    @pytest.mark.asyncio
    async def test_login_unknown_username(self, user_usecase):
        with pytest.raises(NotFoundError) as exc_info:
            await user_usecase.login("ghost", "boo")

        assert exc_info.value.message == "username not found"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, user_usecase):
        await user_usecase.register("carol", "right")

        with pytest.raises(BadRequestError) as exc_info:
            await user_usecase.login("carol", "wrong")

        assert exc_info.value.message == "wrong password"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_signing_failure(self, database, user_usecase):
        await user_usecase.register("dave", "pass")
        token_service = Mock()
        token_service.issue.side_effect = TokenSigningError("no key")
        usecase = UserUseCase(database, UserRepository(), PasswordHasher(), token_service)

        with pytest.raises(InfrastructureError, match="failed to sign JWT token"):
            await usecase.login("dave", "pass")

    @pytest.mark.asyncio
    async def test_get_by_username(self, user_usecase):
        registered = await user_usecase.register("erin", "secret")

        assert await user_usecase.get_by_username("erin") == registered
        with pytest.raises(NotFoundError, match="username not found"):
            await user_usecase.get_by_username("frank")
