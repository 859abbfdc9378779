"""
Unit tests for exception handlers.

Tests the error envelope and the status code of every error kind.
"""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from pydantic import BaseModel

from pds.core.exceptions import (
    DocumentNotFoundError,
    InvalidCredentialsError,
    NameTakenError,
    StorageInconsistencyError,
    StorageUnavailableError,
    STORAGE_UNAVAILABLE_MESSAGE,
    TokenExpiredError,
    UsernameTakenError,
    ValidationError,
    setup_exception_handlers,
)

ERRORS = {
    "validation": ValidationError("name must be a non-empty string", field="name"),
    "username-taken": UsernameTakenError("alice"),
    "name-taken": NameTakenError("a.pdf", 1),
    "not-found": DocumentNotFoundError(99, 1),
    "credentials": InvalidCredentialsError(),
    "expired": TokenExpiredError(),
    "unavailable": StorageUnavailableError(store="catalog"),
    "inconsistent": StorageInconsistencyError("Content of document #1 is missing"),
}


class Body(BaseModel):
    password: str


def build_app(include_internals: bool = False) -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app, include_internals=include_internals)

    @app.get("/raise/{kind}")
    async def raise_error(kind: str):
        raise ERRORS[kind]

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    @app.post("/body")
    async def body(payload: Body):
        return {}

    return app


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestApplicationErrors:
    """Tests for PersonalDataServerError subclasses."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind,status_code,code",
        [
            ("validation", 400, "VALIDATION_ERROR"),
            ("username-taken", 409, "CONFLICT"),
            ("name-taken", 409, "CONFLICT"),
            ("not-found", 404, "NOT_FOUND"),
            ("credentials", 401, "AUTHENTICATION_ERROR"),
            ("expired", 401, "TOKEN_EXPIRED"),
            ("unavailable", 503, "STORAGE_UNAVAILABLE"),
            ("inconsistent", 500, "STORAGE_INCONSISTENCY"),
        ],
    )
    async def test_status_and_code(self, client, kind, status_code, code):
        """Test each error kind maps to its status code."""
        response = await client.get(f"/raise/{kind}")

        assert response.status_code == status_code
        error = response.json()["error"]
        assert error["code"] == code
        assert error["path"] == f"/raise/{kind}"
        assert len(error["error_id"]) == 8

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_found_message_carries_both_ids(self, client):
        """Test that the not-found message names document and owner."""
        response = await client.get("/raise/not-found")

        assert response.json()["error"]["message"] == "Unknown document id #99 or owner id #1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_storage_unavailable_hides_details(self, client):
        """Test that storage failures use a generic message."""
        response = await client.get("/raise/unavailable")

        error = response.json()["error"]
        assert error["message"] == STORAGE_UNAVAILABLE_MESSAGE
        assert "details" not in error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_authentication_sets_www_authenticate(self, client):
        """Test that 401 responses advertise the bearer scheme."""
        response = await client.get("/raise/credentials")

        assert response.headers["www-authenticate"] == "Bearer"


class TestFrameworkErrors:
    """Tests for validation, HTTP and unhandled errors."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_validation_omits_input(self, client):
        """Test that 422 bodies never echo submitted values."""
        response = await client.post("/body", json={"password": 12345})

        assert response.status_code == 422
        assert "12345" not in response.text
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        """Test that 404 from routing uses the envelope."""
        response = await client.get("/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_ERROR"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unhandled_exception_hides_internals(self, client):
        """Test that unexpected errors return a generic 500."""
        response = await client.get("/crash")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["message"] == "An unexpected error occurred"
        assert "boom" not in response.text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unhandled_exception_in_development(self):
        """Test that development mode exposes the error type."""
        transport = ASGITransport(app=build_app(include_internals=True), raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            response = await c.get("/crash")

        error = response.json()["error"]
        assert error["message"] == "boom"
        assert error["details"]["error_type"] == "RuntimeError"
