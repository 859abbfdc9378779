"""
Pytest configuration and fixtures for the test suite.

This module provides shared fixtures for unit and integration tests.
Every test gets its own SQLite file and document store under tmp_path.
"""

import os
from pathlib import Path
from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from faker import Faker
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app modules
TEST_JWT_SECRET = "test-secret-key-for-testing-purposes-only-32chars"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", TEST_JWT_SECRET)
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pds.core.config import Settings
from pds.core.db_client import DatabaseManager
from pds.core.security import PasswordHasher, TokenIssuer
from pds.services.container import ServiceContainer
from pds.stores import FilesystemBlobStore, SqlCredentialStore, SqlDocumentCatalog

fake = Faker()

# Lowest bcrypt cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (API)")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
    config.addinivalue_line("markers", "db: Database tests")
    config.addinivalue_line("markers", "api: API endpoint tests")


# =============================================================================
# Test Data Generators
# =============================================================================

def unique_username() -> str:
    """Random username that will not collide within a test."""
    return f"{fake.user_name()}_{fake.unique.random_int(min=1, max=10**9)}"


@pytest.fixture
def credentials() -> Dict[str, str]:
    """Generate random account credentials for testing."""
    return {"username": unique_username(), "password": fake.password(length=12)}


@pytest.fixture
def document_data() -> Dict[str, object]:
    """Generate random document data for testing."""
    return {
        "name": fake.file_name(extension="pdf"),
        "file_bytes": fake.binary(length=2048),
        "keys": fake.sha256(),
    }


# =============================================================================
# Settings and Storage Fixtures
# =============================================================================

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary database and document store."""
    return Settings(
        JWT_SECRET_KEY=TEST_JWT_SECRET,
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'database.sqlite'}",
        DOCUMENT_STORE_PATH=str(tmp_path / "documents"),
        BCRYPT_ROUNDS=TEST_BCRYPT_ROUNDS,
        DOWNLOAD_CHUNK_SIZE=1024,
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def db(settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """Database manager with all tables created."""
    manager = DatabaseManager.from_settings(settings)
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def credential_store(db: DatabaseManager) -> SqlCredentialStore:
    return SqlCredentialStore(db)


@pytest.fixture
def catalog(db: DatabaseManager) -> SqlDocumentCatalog:
    return SqlDocumentCatalog(db)


@pytest.fixture
def blob_store(settings: Settings) -> FilesystemBlobStore:
    return FilesystemBlobStore(settings.DOCUMENT_STORE_PATH)


@pytest.fixture
def password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(TEST_JWT_SECRET)


@pytest_asyncio.fixture
async def owner_id(credential_store: SqlCredentialStore) -> int:
    """Id of a freshly registered account."""
    account = await credential_store.create(unique_username(), "not-a-real-hash")
    return account.id


# =============================================================================
# Mock Objects
# =============================================================================

@pytest.fixture
def mock_credential_store():
    """Create a mock CredentialStore."""
    store = Mock()
    store.create = AsyncMock()
    store.find_by_username = AsyncMock(return_value=None)
    return store


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def container(settings: Settings, db: DatabaseManager) -> ServiceContainer:
    """Service wiring on the temporary database."""
    return ServiceContainer(settings, db=db)


@pytest.fixture
def app(settings: Settings, container: ServiceContainer):
    """Create a test FastAPI application instance."""
    from pds.main import create_app

    return create_app(settings, container)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def auth_headers(async_client: AsyncClient, credentials: Dict[str, str]) -> Dict[str, str]:
    """Authorization header of a registered, logged-in account."""
    return await register_and_login(async_client, credentials)


# =============================================================================
# Helper Functions
# =============================================================================

def create_auth_header(token: str) -> Dict[str, str]:
    """Create an authorization header with a bearer token."""
    return {"Authorization": f"Bearer {token}"}


async def register_and_login(client: AsyncClient, credentials: Dict[str, str]) -> Dict[str, str]:
    """Register an account over HTTP and return its authorization header."""
    response = await client.post("/accounts/register", json=credentials)
    assert response.status_code == 201, response.text
    response = await client.post("/accounts/login", json=credentials)
    assert response.status_code == 201, response.text
    return create_auth_header(response.json()["access_token"])


async def upload(
    client: AsyncClient,
    headers: Dict[str, str],
    name: str,
    content: bytes,
    keys: str = "k1",
):
    """Upload a document over HTTP."""
    return await client.post(
        "/documents",
        headers=headers,
        files={"file": (name, content, "application/octet-stream")},
        data={"name": name, "keys": keys},
    )
