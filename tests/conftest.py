"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from api.config import APIConfig
from api.main import create_app
from catalog.database import Database
from catalog.repository import AuthorRepository, BookRepository, UserRepository
from catalog.security import PasswordHasher, TokenService
from catalog.usecases import AuthorUseCase, BookUseCase, UserUseCase
from utilities.config import AppConfig

TEST_JWT_KEY = "test-signing-key-that-is-long-enough-for-hs256"


@pytest.fixture
def app_config(tmp_path):
    """Settings pointing at a throwaway SQLite file."""
    return AppConfig(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bookshelf.db'}",
        jwt_key=TEST_JWT_KEY,
        jwt_expiration=timedelta(hours=1),
    )


@pytest.fixture
async def database(app_config):
    """Database with the schema created, disposed after the test."""
    db = Database(app_config)
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def token_service(app_config):
    return TokenService(app_config.jwt_key, app_config.jwt_expiration, app_config.jwt_issuer)


@pytest.fixture
def author_usecase(database):
    return AuthorUseCase(database, AuthorRepository())


@pytest.fixture
def book_usecase(database):
    return BookUseCase(database, BookRepository(), AuthorRepository())


@pytest.fixture
def user_usecase(database, token_service):
    return UserUseCase(database, UserRepository(), PasswordHasher(), token_service)


@pytest.fixture
def sample_birthdate():
    return datetime(1947, 9, 21, tzinfo=timezone.utc)


@pytest.fixture
def client(app_config):
    """Test client running the full application lifespan."""
    app = create_app(app_config=app_config, api_config=APIConfig(_env_file=None))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    """Authorization header of a freshly registered user."""
    credentials = {"username": "reader", "password": "correct horse battery staple"}
    response = client.post("/v1/auth/register", json=credentials)
    assert response.status_code == 201

    response = client.post("/v1/auth/login", json=credentials)
    assert response.status_code == 200
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
