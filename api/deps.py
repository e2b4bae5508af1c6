"""
Service wiring for the HTTP layer.

Services are built once at startup, kept on ``app.state`` and handed to the
endpoints through FastAPI dependencies.
"""

from dataclasses import dataclass

from fastapi import Request

from catalog.database import Database
from catalog.repository import AuthorRepository, BookRepository, UserRepository
from catalog.security import PasswordHasher, TokenService
from catalog.usecases import AuthorUseCase, BookUseCase, UserUseCase
from utilities.config import AppConfig


@dataclass
class Services:
    """Everything an endpoint may need, shared by all requests."""

    database: Database
    token_service: TokenService
    authors: AuthorUseCase
    books: BookUseCase
    users: UserUseCase


def build_services(config: AppConfig, database: Database) -> Services:
    """Assemble repositories, security helpers and use cases over ``database``."""
    author_repository = AuthorRepository()
    token_service = TokenService(
        key=config.jwt_key,
        expiration=config.jwt_expiration,
        issuer=config.jwt_issuer,
    )

    return Services(
        database=database,
        token_service=token_service,
        authors=AuthorUseCase(database, author_repository),
        books=BookUseCase(database, BookRepository(), author_repository),
        users=UserUseCase(database, UserRepository(), PasswordHasher(), token_service),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_author_usecase(request: Request) -> AuthorUseCase:
    return get_services(request).authors


def get_book_usecase(request: Request) -> BookUseCase:
    return get_services(request).books


def get_user_usecase(request: Request) -> UserUseCase:
    return get_services(request).users
