"""
Integration tests for account endpoints.

Tests /accounts/* endpoints.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from conftest import create_auth_header
from pds.core.exceptions import STORAGE_UNAVAILABLE_MESSAGE, StorageUnavailableError


class TestRegisterEndpoint:
    """Tests for POST /accounts/register endpoint."""

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_register_success(self, async_client, credentials):
        """Test registration returns 201 with an empty body."""
        response = await async_client.post("/accounts/register", json=credentials)

        assert response.status_code == 201
        assert response.content == b""

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_register_duplicate(self, async_client, credentials):
        """Test registering a taken username returns 409."""
        await async_client.post("/accounts/register", json=credentials)

        response = await async_client.post("/accounts/register", json=credentials)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{}, {"username": "alice"}, {"username": "", "password": "x"}, {"username": 1, "password": "x"}],
    )
    async def test_register_malformed_body(self, async_client, body):
        """Test malformed registration bodies return 422."""
        response = await async_client.post("/accounts/register", json=body)

        assert response.status_code == 422

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_register_storage_unavailable(self, async_client, container, credentials):
        """Test that an unavailable credential store returns 503."""
        with patch.object(
            container.credential_store,
            "create",
            AsyncMock(side_effect=StorageUnavailableError(store="credentials")),
        ):
            response = await async_client.post("/accounts/register", json=credentials)

        assert response.status_code == 503
        assert response.json()["error"]["message"] == STORAGE_UNAVAILABLE_MESSAGE


class TestLoginEndpoint:
    """Tests for POST /accounts/login endpoint."""

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_login_success(self, async_client, credentials):
        """Test successful login returns 201 with an access token."""
        await async_client.post("/accounts/register", json=credentials)

        response = await async_client.post("/accounts/login", json=credentials)

        assert response.status_code == 201
        data = response.json()
        assert set(data) == {"access_token"}
        assert data["access_token"].count(".") == 2

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client, credentials):
        """Test login with a wrong password returns 401."""
        await async_client.post("/accounts/register", json=credentials)

        response = await async_client.post(
            "/accounts/login",
            json={"username": credentials["username"], "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid username or password"

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_login_unknown_user(self, async_client, credentials):
        """Test login for an unknown account returns the same 401."""
        response = await async_client.post("/accounts/login", json=credentials)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid username or password"

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_login_missing_credentials(self, async_client):
        """Test login with missing credentials returns 422."""
        response = await async_client.post("/accounts/login", json={})

        assert response.status_code == 422


class TestProfileEndpoint:
    """Tests for GET /accounts endpoint."""

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_profile_returns_claims(self, async_client, auth_headers, credentials):
        """Test that the profile echoes the token claims."""
        response = await async_client.get("/accounts", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == credentials["username"]
        assert data["sub"] > 0
        assert data["exp"] - data["iat"] == 2 * 24 * 60 * 60

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_profile_without_token(self, async_client):
        """Test that a missing token returns 401."""
        response = await async_client.get("/accounts")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_profile_with_garbage_token(self, async_client):
        """Test that an invalid token returns 401."""
        response = await async_client.get(
            "/accounts", headers=create_auth_header("not-a-jwt")
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    @pytest.mark.api
    @pytest.mark.auth
    @pytest.mark.asyncio
    async def test_profile_with_expired_token(self, async_client, container):
        """Test that an expired token returns 401."""
        token = container.token_issuer.issue(1, "alice", expires_delta=timedelta(seconds=-1))

        response = await async_client.get("/accounts", headers=create_auth_header(token))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"
