"""Blob storage on local disk, addressed by store-relative paths.

Rows persist paths relative to ``settings.FILE_STORAGE_PATH`` (e.g.
``uploads/cdmi/secret_Report_2024-12-07_160651_1a2b3c4d.zip``); only this
module turns them into absolute filesystem paths.
"""
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
import aiofiles.os

from cdmi.config import settings
from cdmi.errors import MissingBlobError, StorageError


class FileStorageService:
    """Handles file read/write/move/delete below a single storage root."""

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a store-relative path. Rejects paths outside the root."""
        root = self.base_path.resolve()
        candidate = (root / relative_path).resolve()
        if not candidate.is_relative_to(root):
            raise StorageError(
                "Path escapes the storage root",
                details={"storage_path": relative_path},
            )
        return candidate

    async def ensure_dir(self, relative_dir: str) -> Path:
        path = self.resolve(relative_dir)
        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory {relative_dir}: {e}") from e
        return path

    async def save(self, file_bytes: bytes, relative_path: str) -> str:
        """Write bytes at ``relative_path``. Returns the normalized relative path."""
        path = self.resolve(relative_path)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(file_bytes)
        except OSError as e:
            raise StorageError(
                f"Failed to write {relative_path}: {e}",
                details={"storage_path": relative_path},
            ) from e
        return str(PurePosixPath(relative_path))

    async def save_unique(self, file_bytes: bytes, original_name: str, directory: str) -> str:
        """Save under a UUID file name, keeping the original extension."""
        ext = Path(original_name).suffix
        filename = f"{uuid.uuid4()}{ext}"
        return await self.save(file_bytes, str(PurePosixPath(directory) / filename))

    async def read(self, relative_path: str) -> bytes:
        """Read file bytes from storage path."""
        path = self.resolve(relative_path)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise MissingBlobError(relative_path)
        except OSError as e:
            raise StorageError(f"Failed to read {relative_path}: {e}") from e

    async def exists(self, relative_path: str) -> bool:
        return await aiofiles.os.path.isfile(self.resolve(relative_path))

    async def move(self, source: str, destination: str) -> None:
        """Move a blob, creating the destination directory as needed."""
        src = self.resolve(source)
        dst = self.resolve(destination)
        try:
            await aiofiles.os.makedirs(dst.parent, exist_ok=True)
            await aiofiles.os.replace(src, dst)
        except OSError as e:
            raise StorageError(
                f"Failed to move {source} to {destination}: {e}",
                details={"source": source, "destination": destination},
            ) from e

    async def delete(self, relative_path: str) -> bool:
        """Delete a blob. Returns False if it was already absent."""
        path = self.resolve(relative_path)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(
                f"Failed to delete {relative_path}: {e}",
                details={"storage_path": relative_path},
            ) from e
        return True


file_storage = FileStorageService()
