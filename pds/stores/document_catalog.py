"""Document catalog backed by the documents table."""

from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pds.core.db_client import DatabaseManager
from pds.core.exceptions import (
    NameTakenError,
    StorageUnavailableError,
    ValidationError,
)
from pds.core.logging import get_db_logger
from pds.models.db_models import DocumentModel
from pds.models.document import Document
from .base import DocumentCatalog

logger = get_db_logger()

STORE_NAME = "catalog"


class SqlDocumentCatalog(DocumentCatalog):
    """Catalog rows persisted through SQLAlchemy."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def insert(self, name: str, keys: str, owner_id: int) -> Document:
        """
        Insert a catalog row.

        Raises:
            NameTakenError: If (name, owner_id) already exists
            ValidationError: If owner_id references no account
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            async with self.db.session() as session:
                row = DocumentModel(name=name, keys=keys, owner_id=owner_id)
                session.add(row)
                await session.flush()
                document = Document.model_validate(row)

            logger.info(
                "Catalog row inserted", document_id=document.id, owner_id=owner_id
            )
            return document

        except IntegrityError as e:
            # Same exception for the unique and the foreign key constraint
            existing = await self.find_by(name=name, owner_id=owner_id)
            if existing:
                logger.info("Catalog insert rejected: name taken", owner_id=owner_id)
                raise NameTakenError(name, owner_id)
            logger.warning(
                "Catalog insert rejected: unknown owner",
                owner_id=owner_id,
                error=str(e.orig),
            )
            raise ValidationError(
                f"Unknown owner id #{owner_id}", field="owner_id"
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to insert catalog row", owner_id=owner_id, error=str(e))
            raise StorageUnavailableError(store=STORE_NAME)

    async def find_by(
        self,
        id: Optional[int] = None,
        name: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> List[Document]:
        """
        Get rows matching all given criteria, ordered by id.

        Raises:
            StorageUnavailableError: If the database cannot be reached
        """
        stmt = select(DocumentModel)
        if id is not None:
            stmt = stmt.where(DocumentModel.id == id)
        if name is not None:
            stmt = stmt.where(DocumentModel.name == name)
        if owner_id is not None:
            stmt = stmt.where(DocumentModel.owner_id == owner_id)
        stmt = stmt.order_by(DocumentModel.id)

        try:
            async with self.db.session() as session:
                result = await session.execute(stmt)
                return [Document.model_validate(row) for row in result.scalars()]

        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Failed to query catalog",
                document_id=id,
                owner_id=owner_id,
                error=str(e),
            )
            raise StorageUnavailableError(store=STORE_NAME)

    async def delete(self, document: Document) -> None:
        """
        Delete the row for this document; a row that is already gone is a no-op.

        Raises:
            StorageUnavailableError: If the database cannot be reached
        """
        stmt = delete(DocumentModel).where(
            DocumentModel.id == document.id,
            DocumentModel.owner_id == document.owner_id,
        )
        try:
            async with self.db.session() as session:
                result = await session.execute(stmt)
                deleted = result.rowcount

        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Failed to delete catalog row",
                document_id=document.id,
                owner_id=document.owner_id,
                error=str(e),
            )
            raise StorageUnavailableError(store=STORE_NAME)

        if deleted:
            logger.info(
                "Catalog row deleted",
                document_id=document.id,
                owner_id=document.owner_id,
            )
        else:
            logger.warning(
                "Catalog row already absent",
                document_id=document.id,
                owner_id=document.owner_id,
            )
