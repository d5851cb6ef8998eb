"""
On-disk blob storage for file attachments.

Blobs live flat under the configured upload directory. Every stored name is
``<stem>_<epoch ms>_<random6><ext>``; the stem is the sanitized original name,
so two uploads of ``report.pdf`` never share a path.
"""

import logging
import re
import stat
import secrets
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from app.core.config import settings
from app.exceptions.base import FileUploadError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "text/plain",
        "text/csv",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/zip",
        "application/x-zip-compressed",
    }
)

CHUNK_SIZE = 64 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class StoredBlob:
    stored_name: str
    path: str
    size: int


def base_mime_type(content_type: Optional[str]) -> str:
    """``'text/plain; charset=utf-8' -> 'text/plain'``"""
    return (content_type or "").split(";", 1)[0].strip().lower()


def is_allowed_mime_type(content_type: Optional[str]) -> bool:
    return base_mime_type(content_type) in ALLOWED_MIME_TYPES


def generate_stored_name(original_name: str) -> str:
    """Unique on-disk name derived from the client-supplied file name."""
    original = Path(original_name or "").name
    suffix = Path(original).suffix
    ext = suffix if re.fullmatch(r"\.[A-Za-z0-9]{1,10}", suffix) else ""
    stem = original[: len(original) - len(suffix)] if suffix else original
    stem = _UNSAFE_CHARS.sub("_", stem).strip("_")[:100] or "file"
    timestamp = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))
    return f"{stem}_{timestamp}_{random_part}{ext}"


class BlobStorage:
    """Writes, reads and removes attachment blobs under one directory."""

    def __init__(self, root: Optional[str] = None, max_file_size: Optional[int] = None):
        self.root = Path(root or settings.upload_dir).resolve()
        self.max_file_size = max_file_size or settings.max_file_size

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile) -> StoredBlob:
        """Stream an upload to disk, enforcing the size limit while writing.

        A partially written blob is removed before the error propagates.
        """
        self.ensure_root()
        stored_name = generate_stored_name(upload.filename or "")
        path = self.root / stored_name
        size = 0

        try:
            async with aiofiles.open(path, "xb") as out:
                while chunk := await upload.read(CHUNK_SIZE):
                    size += len(chunk)
                    if size > self.max_file_size:
                        raise FileUploadError(
                            f"File {upload.filename} exceeds maximum allowed size "
                            f"of {self.max_file_size} bytes"
                        )
                    await out.write(chunk)
        except FileUploadError:
            await self.remove(str(path))
            raise
        except FileExistsError as e:
            # Never overwrite a blob another record may point at
            logger.error("Refusing to overwrite existing blob %s", path)
            raise FileUploadError("Failed to save uploaded file") from e
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", path, e)
            await self.remove(str(path))
            raise FileUploadError("Failed to save uploaded file") from e

        logger.debug("Stored blob %s (%d bytes)", stored_name, size)
        return StoredBlob(stored_name=stored_name, path=str(path), size=size)

    async def exists(self, path: str) -> bool:
        return await aiofiles.os.path.isfile(path)

    async def list_blobs(self, older_than: float = 0, now: Optional[float] = None) -> list[str]:
        """Paths of regular files under the root last modified more than
        ``older_than`` seconds ago. Empty when the root does not exist.
        """
        now = time.time() if now is None else now
        try:
            names = await aiofiles.os.listdir(self.root)
        except FileNotFoundError:
            return []

        paths = []
        for name in sorted(names):
            path = self.root / name
            try:
                info = await aiofiles.os.stat(path)
            except FileNotFoundError:
                continue
            if stat.S_ISREG(info.st_mode) and now - info.st_mtime > older_than:
                paths.append(str(path))
        return paths

    async def remove(self, path: str) -> bool:
        """Delete a blob. Returns False when it was already gone.

        Other ``OSError``s propagate to the caller.
        """
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        logger.debug("Removed blob %s", path)
        return True

    async def iter_chunks(self, path: str) -> AsyncIterator[bytes]:
        """Read a blob in chunks; the handle is closed on every exit path."""
        async with aiofiles.open(path, "rb") as src:
            while chunk := await src.read(CHUNK_SIZE):
                yield chunk
