"""
Upload Storage - Transient on-disk storage for uploaded audio clips.

An uploaded clip is written to the upload directory under a
timestamp-derived name, handed to the recognition client, and removed
once the request is finished. `UploadStorage.store` is the only way the
API touches this module, so removal happens in exactly one place no
matter how recognition ends.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

from ..core.config import settings
from ..core.utils import generate_upload_name

# Configure logging
logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class UploadedFile:
    """
    An uploaded clip persisted on disk.

    Attributes:
        path: Location of the stored bytes
        filename: Generated name the clip is stored (and forwarded) under
        original_filename: Name the client sent, if any
        content_type: Content type the client sent, if any
    """
    path: Path
    filename: str
    original_filename: Optional[str] = None
    content_type: Optional[str] = None


class UploadStorage:
    """
    Writes uploads to the working directory and removes them again.

    No size or type validation happens here; whatever the client sends
    is stored and forwarded.
    """

    def __init__(self, upload_dir: Optional[Path] = None):
        self.upload_dir = Path(upload_dir or settings.uploads.upload_dir)

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile) -> UploadedFile:
        """
        Persist an uploaded file under a fresh transient name.

        Args:
            upload: The multipart file field from the request

        Returns:
            The stored file's path and metadata
        """
        self.ensure_dir()
        filename = generate_upload_name()
        path = self.upload_dir / filename

        try:
            with open(path, "wb") as buffer:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    await asyncio.to_thread(buffer.write, chunk)
        except Exception:
            self._unlink(path)
            raise

        logger.debug(f"Stored upload {upload.filename!r} as {path}")
        return UploadedFile(
            path=path,
            filename=filename,
            original_filename=upload.filename,
            content_type=upload.content_type
        )

    def remove(self, uploaded: UploadedFile) -> bool:
        """
        Delete a stored upload.

        Failures are logged, never raised.

        Returns:
            True if the file was deleted by this call
        """
        return self._unlink(uploaded.path)

    @asynccontextmanager
    async def store(self, upload: UploadFile) -> AsyncIterator[UploadedFile]:
        """
        Store an upload for the duration of a block.

        The file is removed when the block exits, whether it returns
        normally or raises.
        """
        uploaded = await self.save(upload)
        try:
            yield uploaded
        finally:
            self.remove(uploaded)

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove upload {path}: {str(e)}")
            return False
        logger.debug(f"Removed upload {path}")
        return True


# Global storage instance for the application
upload_storage = UploadStorage()
