"""
Tests for registration, login and the bearer token check.
"""

from datetime import datetime, timedelta, timezone

from catalog.security import TokenService


class TestRegisterAndLogin:
    """Test cases for the /auth endpoints."""

    def test_register(self, client):
        response = client.post("/v1/auth/register", json={"username": "alice", "password": "pw"})

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["username"] == "alice"
        assert body["data"]["id"] > 0
        assert "password" not in body["data"]
        assert len(body["data_hash"]) == 64

    def test_register_duplicate(self, client):
        client.post("/v1/auth/register", json={"username": "alice", "password": "pw"})

        response = client.post("/v1/auth/register", json={"username": "alice", "password": "other"})

        assert response.status_code == 400
        assert response.json() == {"error": "duplicate username", "data": None}

    def test_register_empty_password(self, client):
        response = client.post("/v1/auth/register", json={"username": "alice", "password": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "validation error in field password"

    def test_login(self, client):
        client.post("/v1/auth/register", json={"username": "alice", "password": "pw"})

        response = client.post("/v1/auth/login", json={"username": "alice", "password": "pw"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "alice"
        assert data["token"]

    def test_login_unknown_user(self, client):
        response = client.post("/v1/auth/login", json={"username": "nobody", "password": "pw"})

        assert response.status_code == 404
        assert response.json()["error"] == "username not found"

    def test_login_wrong_password(self, client):
        client.post("/v1/auth/register", json={"username": "alice", "password": "pw"})

        response = client.post("/v1/auth/login", json={"username": "alice", "password": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "wrong password"


class TestAuthenticationCheck:
    """Test cases for the bearer token check on catalog endpoints."""

    def test_missing_header(self, client):
        response = client.get("/v1/authors")

        assert response.status_code == 401
        assert response.json() == {"error": "authorization header is missing", "data": None}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_wrong_scheme(self, client):
        response = client.get("/v1/books", headers={"Authorization": "Basic YWxpY2U6cHc="})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid authorization format"

    def test_garbage_token(self, client):
        response = client.get("/v1/authors", headers={"Authorization": "Bearer not.a.token"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid token"

    def test_expired_token(self, client, app_config):
        client.post("/v1/auth/register", json={"username": "alice", "password": "pw"})
        service = TokenService(app_config.jwt_key, app_config.jwt_expiration, app_config.jwt_issuer)
        token = service.issue("alice", now=datetime.now(timezone.utc) - timedelta(days=1))

        response = client.get("/v1/authors", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid token"

    def test_token_for_unknown_user(self, client, app_config):
        service = TokenService(app_config.jwt_key, app_config.jwt_expiration, app_config.jwt_issuer)
        token = service.issue("ghost")

        response = client.get("/v1/authors", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json()["error"] == "username not found"

    def test_auth_runs_before_path_validation(self, client):
        response = client.get("/v1/authors/0")

        assert response.status_code == 401

    def test_valid_token(self, client, auth_headers):
        response = client.get("/v1/authors", headers=auth_headers)

        assert response.status_code == 200
