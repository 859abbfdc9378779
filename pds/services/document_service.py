"""
Document Service - coordinates the catalog and the blob store.

Every operation that writes to both stores leaves the system in a state
where either both writes happened or neither did, using compensating
rollback on the blob store when the catalog write fails.
"""

from typing import AsyncIterator, List, Optional, Tuple

from pds.core.exceptions import (
    DocumentNotFoundError,
    NameTakenError,
    StorageInconsistencyError,
    StorageUnavailableError,
    ValidationError,
)
from pds.core.logging import get_service_logger
from pds.models.document import Document
from pds.stores.base import BlobStore, DocumentCatalog
from pds.stores.blob_store import DEFAULT_CHUNK_SIZE, BlobNotFoundError
from pds.utils.validators import (
    require_non_empty,
    require_positive_id,
    validate_document_name,
)


class DocumentService:
    """Upload, listing, download and deletion of an owner's documents."""

    def __init__(
        self,
        catalog: DocumentCatalog,
        blob_store: BlobStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.catalog = catalog
        self.blob_store = blob_store
        self.chunk_size = chunk_size
        self.logger = get_service_logger("document")

    async def create(
        self, name: str, file_bytes: bytes, keys: str, owner_id: int
    ) -> Document:
        """
        Store a new document: blob first, then the catalog row.

        Args:
            name: Document name, used verbatim as the blob file name
            file_bytes: Document content (may be empty)
            keys: Opaque key material
            owner_id: Owning account id

        Returns:
            The created Document

        Raises:
            ValidationError: If any argument is invalid
            NameTakenError: If the owner already has a document with this name
            StorageUnavailableError: If either store cannot be reached
        """
        validate_document_name(name)
        require_non_empty(keys, "keys")
        require_positive_id(owner_id, "owner_id")
        if not isinstance(file_bytes, (bytes, bytearray)):
            raise ValidationError("file must be bytes", field="file")

        if await self.catalog.find_by(name=name, owner_id=owner_id):
            self.logger.info("Document creation rejected: name taken", owner_id=owner_id)
            raise NameTakenError(name, owner_id)

        await self.blob_store.ensure_namespace(owner_id)
        try:
            await self.blob_store.write(owner_id, name, bytes(file_bytes))
        except (NameTakenError, StorageUnavailableError):
            await self._prune_namespace(owner_id)
            raise

        try:
            document = await self.catalog.insert(name, keys, owner_id)
        except Exception as e:
            self.logger.warning(
                "Catalog insert failed, rolling back blob",
                owner_id=owner_id,
                error_type=type(e).__name__,
            )
            await self._rollback_blob(owner_id, name)
            raise

        self.logger.info(
            "Document created",
            document_id=document.id,
            owner_id=owner_id,
            size=len(file_bytes),
        )
        return document

    async def find_all(self, owner_id: int) -> List[Document]:
        """All documents of an owner in insertion order."""
        require_positive_id(owner_id, "owner_id")
        return await self.catalog.find_by(owner_id=owner_id)

    async def find_one(self, document_id: int, owner_id: int) -> Optional[Document]:
        """The document with this id if it belongs to this owner, else None."""
        require_positive_id(owner_id, "owner_id")
        # No row can carry a non-positive id
        if isinstance(document_id, bool) or not isinstance(document_id, int) or document_id <= 0:
            return None
        documents = await self.catalog.find_by(id=document_id, owner_id=owner_id)
        return documents[0] if documents else None

    async def _get(self, document_id: int, owner_id: int) -> Document:
        document = await self.find_one(document_id, owner_id)
        if document is None:
            raise DocumentNotFoundError(document_id, owner_id)
        return document

    async def open(
        self, document_id: int, owner_id: int
    ) -> Tuple[Document, AsyncIterator[bytes]]:
        """
        Resolve a document and open its content for streaming.

        Raises:
            DocumentNotFoundError: If the id does not resolve for this owner
            StorageInconsistencyError: If the catalog row has no blob
        """
        document = await self._get(document_id, owner_id)
        if not await self.blob_store.exists(owner_id, document.name):
            raise self._missing_blob(document)
        return document, self._stream(document)

    async def _stream(self, document: Document) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.blob_store.stream(
                document.owner_id, document.name, self.chunk_size
            ):
                yield chunk
        except BlobNotFoundError:
            raise self._missing_blob(document)

    async def read(self, document_id: int, owner_id: int) -> bytes:
        """Resolve a document and return its whole content."""
        document = await self._get(document_id, owner_id)
        try:
            return await self.blob_store.read(owner_id, document.name)
        except BlobNotFoundError:
            raise self._missing_blob(document)

    async def remove(self, document_id: int, owner_id: int) -> None:
        """
        Delete a document: blob first, then the catalog row.

        Raises:
            DocumentNotFoundError: If the id does not resolve for this owner
            StorageUnavailableError: If the blob could not be deleted (row kept)
            StorageInconsistencyError: If the row could not be deleted after
                the blob was
        """
        document = await self._get(document_id, owner_id)

        try:
            await self.blob_store.delete(owner_id, document.name)
        except BlobNotFoundError:
            self.logger.warning(
                "Blob already missing on remove",
                document_id=document_id,
                owner_id=owner_id,
            )

        await self._prune_namespace(owner_id)

        try:
            await self.catalog.delete(document)
        except StorageUnavailableError as e:
            self.logger.critical(
                "Catalog row left without blob",
                document_id=document_id,
                owner_id=owner_id,
            )
            raise StorageInconsistencyError(
                f"Document #{document_id} content was deleted but its catalog "
                "entry could not be removed",
                {"document_id": document_id, "owner_id": owner_id},
            ) from e

        self.logger.info("Document removed", document_id=document_id, owner_id=owner_id)

    async def _rollback_blob(self, owner_id: int, name: str) -> None:
        try:
            await self.blob_store.delete(owner_id, name)
        except BlobNotFoundError:
            pass
        except StorageUnavailableError:
            self.logger.critical("Rollback failed, blob left orphaned", owner_id=owner_id)
            return
        await self._prune_namespace(owner_id)

    async def _prune_namespace(self, owner_id: int) -> None:
        try:
            await self.blob_store.prune_namespace(owner_id)
        except StorageUnavailableError:
            self.logger.warning("Could not prune owner namespace", owner_id=owner_id)

    def _missing_blob(self, document: Document) -> StorageInconsistencyError:
        self.logger.error(
            "Catalog row without blob",
            document_id=document.id,
            owner_id=document.owner_id,
        )
        return StorageInconsistencyError(
            f"Content of document #{document.id} is missing",
            {"document_id": document.id, "owner_id": document.owner_id},
        )
