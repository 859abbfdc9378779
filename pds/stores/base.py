"""
Store interfaces used by the services.

Services depend on these abstractions only; the SQL and filesystem
implementations live in sibling modules.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

from pds.models.account import Account
from pds.models.document import Document


class CredentialStore(ABC):
    """Persistent mapping of usernames to password hashes."""

    @abstractmethod
    async def create(self, username: str, password_hash: str) -> Account:
        """Insert an account; UsernameTakenError if the username exists."""

    @abstractmethod
    async def find_by_username(self, username: str) -> Optional[Account]:
        """Exact, case-sensitive lookup."""


class DocumentCatalog(ABC):
    """Relational index of documents."""

    @abstractmethod
    async def insert(self, name: str, keys: str, owner_id: int) -> Document:
        """Insert a row; NameTakenError if (name, owner_id) exists."""

    @abstractmethod
    async def find_by(
        self,
        id: Optional[int] = None,
        name: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> List[Document]:
        """Rows matching every given criterion, ordered by id."""

    @abstractmethod
    async def delete(self, document: Document) -> None:
        """Delete the row for this document."""


class BlobStore(ABC):
    """Byte storage partitioned by owner namespace."""

    @abstractmethod
    async def ensure_namespace(self, owner_id: int) -> None:
        ...

    @abstractmethod
    async def write(self, owner_id: int, name: str, data: bytes) -> None:
        """Create a new blob; NameTakenError if one already exists."""

    @abstractmethod
    async def read(self, owner_id: int, name: str) -> bytes:
        ...

    @abstractmethod
    def stream(
        self, owner_id: int, name: str, chunk_size: int
    ) -> AsyncIterator[bytes]:
        """Yield the blob in chunks of at most chunk_size bytes."""

    @abstractmethod
    async def exists(self, owner_id: int, name: str) -> bool:
        ...

    @abstractmethod
    async def delete(self, owner_id: int, name: str) -> None:
        ...

    @abstractmethod
    async def list_names(self, owner_id: int) -> List[str]:
        ...

    @abstractmethod
    async def prune_namespace(self, owner_id: int) -> bool:
        """Remove the namespace if empty; True when it was removed."""
