"""
User use cases: registration, login and identity lookup.
"""

import asyncio

import structlog

from catalog.database import Database, DuplicateKey, RecordNotFound, StoreError, Transaction
from catalog.entities import User
from catalog.errors import BadRequestError, DuplicateError, InfrastructureError, NotFoundError
from catalog.repository import UserRepository
from catalog.schemas import LoginResponse, UserResponse
from catalog.security import PasswordHasher, TokenService, TokenSigningError
from catalog.usecases.base import commit

logger = structlog.get_logger(__name__)


class UserUseCase:
    """Register users, log them in and resolve token subjects."""

    def __init__(
        self,
        database: Database,
        repository: UserRepository,
        password_hasher: PasswordHasher,
        token_service: TokenService,
    ):
        self.database = database
        self.repository = repository
        self.password_hasher = password_hasher
        self.token_service = token_service

    async def register(self, username: str, password: str) -> UserResponse:
        """
        Create a user with a hashed password.

        Raises:
            DuplicateError: "duplicate username" when the name is taken
        """
        async with self.database.transaction() as tx:
            try:
                hashed_password = await asyncio.to_thread(self.password_hasher.hash, password)
            except (ValueError, TypeError) as e:
                logger.error("Failed to generate hashed password", error=str(e))
                raise InfrastructureError("failed to generate hashed password") from e

            user = User(username=username, password=hashed_password)

            try:
                await self.repository.create(tx, user)
            except DuplicateKey as e:
                raise DuplicateError("duplicate username") from e
            except StoreError as e:
                raise InfrastructureError("failed to create new user") from e

            await commit(tx)

        logger.info("User registered", user_id=user.id, username=user.username)
        return UserResponse.from_entity(user)

    async def login(self, username: str, password: str) -> LoginResponse:
        """
        Check credentials and issue an identity token.

        Raises:
            NotFoundError: "username not found"
            BadRequestError: "wrong password"
        """
        async with self.database.transaction(read_only=True) as tx:
            user = await self._find_by_username(tx, username)

            try:
                matches = await asyncio.to_thread(self.password_hasher.verify, password, user.password)
            except (ValueError, TypeError) as e:
                logger.error("Failed to compare hash and password", user_id=user.id, error=str(e))
                raise InfrastructureError("failed to compare hash and password") from e

            if not matches:
                logger.info("Login rejected", username=username, reason="wrong password")
                raise BadRequestError("wrong password")

            try:
                token = self.token_service.issue(user.username, user_id=user.id)
            except TokenSigningError as e:
                logger.error("Failed to sign JWT token", user_id=user.id, error=str(e))
                raise InfrastructureError("failed to sign JWT token") from e

            await commit(tx)

        return LoginResponse(id=user.id, username=user.username, token=token)

    async def get_by_username(self, username: str) -> UserResponse:
        async with self.database.transaction(read_only=True) as tx:
            user = await self._find_by_username(tx, username)
            await commit(tx)

        return UserResponse.from_entity(user)

    async def _find_by_username(self, tx: Transaction, username: str) -> User:
        try:
            return await self.repository.find_by_username(tx, username)
        except RecordNotFound as e:
            raise NotFoundError("username not found") from e
        except StoreError as e:
            raise InfrastructureError("failed to find user data by username") from e
