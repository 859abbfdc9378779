"""
Filesystem blob store.

Layout: <root>/<owner_id>/<name>. One directory per owner, created on the
owner's first upload and removed again when it becomes empty.
"""

import errno
from pathlib import Path
from typing import AsyncIterator, List, Union

import aiofiles
import aiofiles.os

from pds.core.exceptions import NameTakenError, StorageUnavailableError
from pds.core.logging import get_service_logger
from pds.utils.validators import validate_document_name
from .base import BlobStore

STORE_NAME = "blobs"

DEFAULT_CHUNK_SIZE = 64 * 1024


class BlobNotFoundError(Exception):
    """Requested blob does not exist."""

    def __init__(self, owner_id: int, name: str):
        super().__init__(f"Blob not found for owner #{owner_id}: {name}")
        self.owner_id = owner_id
        self.name = name


class FilesystemBlobStore(BlobStore):
    """Blobs stored as plain files under a root directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.logger = get_service_logger("blob_store")

    def _namespace(self, owner_id: int) -> Path:
        return self.root / str(owner_id)

    def _blob_path(self, owner_id: int, name: str) -> Path:
        validate_document_name(name)
        return self._namespace(owner_id) / name

    def _unavailable(self, action: str, owner_id: int, error: OSError):
        self.logger.error(
            f"Blob store failed to {action}",
            owner_id=owner_id,
            error=str(error),
            errno=error.errno,
        )
        return StorageUnavailableError(store=STORE_NAME)

    async def ensure_namespace(self, owner_id: int) -> None:
        """Create the owner directory if needed."""
        try:
            await aiofiles.os.makedirs(self._namespace(owner_id), exist_ok=True)
        except OSError as e:
            raise self._unavailable("create namespace", owner_id, e)

    async def write(self, owner_id: int, name: str, data: bytes) -> None:
        """
        Write a new blob with exclusive creation.

        A partially written file is removed before the error is raised.
        The owner namespace is recreated if it was pruned concurrently.

        Raises:
            NameTakenError: If a blob with this name already exists
            StorageUnavailableError: On any other filesystem failure
        """
        path = self._blob_path(owner_id, name)
        try:
            try:
                f = await aiofiles.open(path, "xb")
            except FileNotFoundError:
                self.logger.info("Namespace missing on write, recreating", owner_id=owner_id)
                await aiofiles.os.makedirs(self._namespace(owner_id), exist_ok=True)
                f = await aiofiles.open(path, "xb")
        except FileExistsError:
            self.logger.info("Blob write rejected: file exists", owner_id=owner_id)
            raise NameTakenError(name, owner_id)
        except OSError as e:
            raise self._unavailable("open blob", owner_id, e)

        try:
            try:
                await f.write(data)
            finally:
                await f.close()
        except OSError as e:
            await self._discard(path, owner_id)
            raise self._unavailable("write blob", owner_id, e)

        self.logger.debug("Blob written", owner_id=owner_id, size=len(data))

    async def _discard(self, path: Path, owner_id: int) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(
                "Failed to remove partially written blob",
                owner_id=owner_id,
                error=str(e),
            )

    async def read(self, owner_id: int, name: str) -> bytes:
        """
        Read a whole blob.

        Raises:
            BlobNotFoundError: If the blob does not exist
            StorageUnavailableError: On any other filesystem failure
        """
        path = self._blob_path(owner_id, name)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise BlobNotFoundError(owner_id, name)
        except OSError as e:
            raise self._unavailable("read blob", owner_id, e)

    async def stream(
        self, owner_id: int, name: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> AsyncIterator[bytes]:
        """Yield a blob in chunks; the file is closed when iteration ends."""
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        path = self._blob_path(owner_id, name)
        try:
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except FileNotFoundError:
            raise BlobNotFoundError(owner_id, name)
        except OSError as e:
            raise self._unavailable("stream blob", owner_id, e)

    async def exists(self, owner_id: int, name: str) -> bool:
        return await aiofiles.os.path.isfile(self._blob_path(owner_id, name))

    async def delete(self, owner_id: int, name: str) -> None:
        """
        Delete a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist
            StorageUnavailableError: On any other filesystem failure
        """
        path = self._blob_path(owner_id, name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            raise BlobNotFoundError(owner_id, name)
        except OSError as e:
            raise self._unavailable("delete blob", owner_id, e)

        self.logger.debug("Blob deleted", owner_id=owner_id)

    async def list_names(self, owner_id: int) -> List[str]:
        """Blob names in an owner's namespace; empty when it does not exist."""
        try:
            return sorted(await aiofiles.os.listdir(self._namespace(owner_id)))
        except FileNotFoundError:
            return []
        except OSError as e:
            raise self._unavailable("list namespace", owner_id, e)

    async def prune_namespace(self, owner_id: int) -> bool:
        """
        Remove the owner directory when it holds no blobs.

        Returns:
            True if the directory was removed
        """
        if await self.list_names(owner_id):
            return False
        try:
            await aiofiles.os.rmdir(self._namespace(owner_id))
        except FileNotFoundError:
            return False
        except OSError as e:
            # A concurrent upload refilled the directory
            if e.errno == errno.ENOTEMPTY:
                return False
            raise self._unavailable("prune namespace", owner_id, e)

        self.logger.debug("Namespace pruned", owner_id=owner_id)
        return True
