"""
Service wiring.

Builds the stores and services for one application instance from its
settings. Configuration values are injected through constructors; nothing
below this layer reads the environment.
"""

from datetime import timedelta
from typing import Optional

from pds.core.config import Settings
from pds.core.db_client import DatabaseManager
from pds.core.security import PasswordHasher, TokenIssuer
from pds.stores import FilesystemBlobStore, SqlCredentialStore, SqlDocumentCatalog
from .account_service import AccountService
from .document_service import DocumentService


class ServiceContainer:
    """Holds the database manager, stores and services of one app."""

    def __init__(self, settings: Settings, db: Optional[DatabaseManager] = None):
        self.settings = settings
        self.db = db or DatabaseManager.from_settings(settings)

        self.credential_store = SqlCredentialStore(self.db)
        self.catalog = SqlDocumentCatalog(self.db)
        self.blob_store = FilesystemBlobStore(settings.DOCUMENT_STORE_PATH)

        self.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        self.token_issuer = TokenIssuer(
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

        self.account_service = AccountService(
            self.credential_store, self.password_hasher, self.token_issuer
        )
        self.document_service = DocumentService(
            self.catalog,
            self.blob_store,
            chunk_size=settings.DOWNLOAD_CHUNK_SIZE,
        )

    async def startup(self) -> None:
        """Create tables if missing."""
        await self.db.create_tables()

    async def close(self) -> None:
        await self.db.close()
