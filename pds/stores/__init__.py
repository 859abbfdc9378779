"""
Storage backends.

- base: store interfaces consumed by the services
- credential_store: accounts table (SQLAlchemy)
- document_catalog: documents table (SQLAlchemy)
- blob_store: document bytes on the local filesystem (aiofiles)
"""

from .base import BlobStore, CredentialStore, DocumentCatalog
from .blob_store import BlobNotFoundError, FilesystemBlobStore
from .credential_store import SqlCredentialStore
from .document_catalog import SqlDocumentCatalog

__all__ = [
    "BlobStore",
    "CredentialStore",
    "DocumentCatalog",
    "BlobNotFoundError",
    "FilesystemBlobStore",
    "SqlCredentialStore",
    "SqlDocumentCatalog",
]
