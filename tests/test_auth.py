"""Tests for authentication system."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from jose import jwt

from taskboard.auth.tokens import (
    REFRESH_TOKEN_TYPE,
    TokenCodec,
    get_password_hash,
    verify_password,
)
from taskboard.core.exceptions import ExpiredTokenError, InvalidTokenError
from taskboard.storage.database.auth_models import User
from taskboard.storage.database.repository import UserRepository

TEST_PASSWORD = "password123"
TEST_SECRET = "test-secret-key"


class TestPasswordHashing:
    """Test password hashing functions."""

    def test_hash_password(self) -> None:
        """Test password hashing."""
        password = "test_password123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2b$")

    def test_verify_password_success(self) -> None:
        """Test password verification with correct password."""
        hashed = get_password_hash("test_password123")

        assert verify_password("test_password123", hashed) is True

    def test_verify_password_failure(self) -> None:
        """Test password verification with incorrect password."""
        hashed = get_password_hash("test_password123")

        assert verify_password("wrong_password", hashed) is False


class TestTokenCodec:
    """Test JWT encoding and decoding."""

    def _user(self) -> User:
        user = User(id=5, email="ann@example.com", name="Ann", hashed_password="x", jti="session-jti")
        user.generate_refresh_credential(timedelta(days=30))
        return user

    def test_access_token_claims(self, codec: TokenCodec) -> None:
        """Test access tokens carry the user id and session jti."""
        user = self._user()
        now = datetime.now(timezone.utc)

        claims = codec.decode(codec.create_access_token(user, now=now))

        assert claims["sub"] == "5"
        assert claims["jti"] == "session-jti"
        assert claims["exp"] - claims["iat"] == 15 * 60
        assert "type" not in claims

    def test_refresh_token_claims(self, codec: TokenCodec) -> None:
        """Test refresh tokens carry the refresh_jti and type marker."""
        user = self._user()

        claims = codec.decode_refresh_token(codec.create_refresh_token(user))

        assert claims["refresh_jti"] == user.refresh_jti
        assert claims["type"] == REFRESH_TOKEN_TYPE
        assert claims["exp"] == int(user.refresh_token_expires_at.timestamp())

    def test_refresh_token_requires_credential(self, codec: TokenCodec) -> None:
        """Test a user without refresh credential cannot get a refresh token."""
        user = User(id=5, email="ann@example.com", name="Ann", hashed_password="x")

        with pytest.raises(ValueError):
            codec.create_refresh_token(user)

    def test_decode_invalid_token(self, codec: TokenCodec) -> None:
        """Test decoding garbage reports a fixed reason, not library text."""
        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode("invalid_token")

        assert exc_info.value.details == {"refresh_token": ["is invalid or expired"]}

    def test_decode_wrong_secret(self, codec: TokenCodec) -> None:
        """Test tokens signed with another secret are rejected."""
        token = TokenCodec("other-secret").create_access_token(self._user())

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode(token)

        assert exc_info.value.details == {"refresh_token": ["is invalid or expired"]}

    def test_decode_expired_token(self, codec: TokenCodec) -> None:
        """Test expiry is reported distinctly."""
        token = jwt.encode({"sub": "5", "exp": 1}, TEST_SECRET, algorithm="HS256")

        with pytest.raises(ExpiredTokenError) as exc_info:
            codec.decode(token)

        assert exc_info.value.details == {"refresh_token": ["has expired"]}

    def test_access_token_is_not_refresh_token(self, codec: TokenCodec) -> None:
        """Test the type marker is enforced."""
        token = codec.create_access_token(self._user())

        with pytest.raises(InvalidTokenError) as exc_info:
            codec.decode_refresh_token(token)

        assert exc_info.value.details == {"refresh_token": ["is not a refresh token"]}


class TestAuthAPI:
    """Test authentication endpoints."""

    @pytest.mark.asyncio
    async def test_register(self, client: httpx.AsyncClient) -> None:
        """Test user registration."""
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "New@Example.com", "name": "New User", "password": TEST_PASSWORD},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new@example.com"
        assert "hashed_password" not in body

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: httpx.AsyncClient, make_user) -> None:
        """Test duplicate email is rejected with a structured body."""
        await make_user(email="taken@example.com")

        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "taken@example.com", "name": "Someone", "password": TEST_PASSWORD},
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "User with this email already exists",
            "errors": {"email": ["has already been taken"]},
        }

    @pytest.mark.asyncio
    async def test_login(self, client: httpx.AsyncClient, make_user) -> None:
        """Test login returns both tokens and the Authorization header."""
        user = await make_user(email="ann@example.com")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "ann@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == user.id
        assert body["token"] and body["refresh_token"]
        assert response.headers["authorization"] == f"Bearer {body['token']}"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: httpx.AsyncClient, make_user) -> None:
        """Test wrong password is unauthorized."""
        await make_user(email="ann@example.com")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "ann@example.com", "password": "not-the-password"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid Email or password."

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client: httpx.AsyncClient) -> None:
        """Test protected endpoint without credentials."""
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_me_rejects_refresh_token(self, client: httpx.AsyncClient, make_user, codec) -> None:
        """Test refresh tokens cannot authenticate API calls."""
        user = await make_user()
        user.generate_refresh_credential(timedelta(days=1))

        response = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {codec.create_refresh_token(user)}"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_flow(self, client: httpx.AsyncClient, make_user, session_factory) -> None:
        """Test login, refresh, reuse of the old token and logout."""
        user = await make_user(email="ann@example.com")

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "ann@example.com", "password": TEST_PASSWORD},
        )
        first_refresh = login.json()["refresh_token"]

        refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": first_refresh})

        assert refreshed.status_code == 200
        body = refreshed.json()
        assert body["message"] == "Token refreshed successfully"
        assert body["refresh_token"] != first_refresh
        assert refreshed.headers["authorization"] == f"Bearer {body['token']}"

        reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": first_refresh})

        assert reused.status_code == 401
        assert reused.json()["success"] is False

        logout = await client.delete(
            "/api/v1/auth/logout",
            headers={"Authorization": f"Bearer {body['token']}"},
        )
        assert logout.status_code == 200

        after_logout = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": body["refresh_token"]}
        )
        assert after_logout.status_code == 401

        stale_access = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {body['token']}"},
        )
        assert stale_access.status_code == 401

        async with session_factory() as session:
            stored = await UserRepository(session).get_by_id(user.id)
            assert stored.refresh_jti is None

    @pytest.mark.asyncio
    async def test_refresh_missing_token(self, client: httpx.AsyncClient) -> None:
        """Test a missing token yields 401 with a field error."""
        response = await client.post("/api/v1/auth/refresh", json={})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Refresh token is required",
            "errors": {"refresh_token": ["can't be blank"]},
        }

    @pytest.mark.asyncio
    async def test_refresh_garbage_token(self, client: httpx.AsyncClient) -> None:
        """Test malformed tokens yield 401."""
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token"
        assert response.json()["errors"] == {"refresh_token": ["is invalid or expired"]}
