"""Upload archiver: store uploaded files, bundle them into one ZIP, drop the loose copies.

Flow for one create request:
    1. every valid payload is written as ``{index}_{title}_{stamp}{ext}``
    2. nothing stored -> NoValidFilesError
    3. ``{password}_{title}_{stamp}.zip`` is opened in exclusive-create mode
    4. stored files are added under their base names
    5. archive closed, loose files deleted

``stamp`` is the UTC second plus a random request token, so concurrent
requests with equal title/password never share an archive name. If any step
after (1) fails or the request is cancelled, the files written so far are
removed again and no archive is left behind.
"""
import asyncio
import logging
import re
import uuid
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Awaitable, Callable, Optional

from cdmi.config import settings
from cdmi.errors import ArchiveCreateError, NoValidFilesError, StorageError
from cdmi.services.file_storage import FileStorageService, file_storage

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_SLUG_MAX_LENGTH = 80


def slugify(value: Optional[str], fallback: str = "") -> str:
    """Make a value safe for use inside a file name."""
    slug = _UNSAFE_CHARS.sub("-", value or "").strip("-.")
    return slug[:_SLUG_MAX_LENGTH] or fallback


@dataclass
class FilePayload:
    """One uploaded file part, already read into memory."""
    filename: str
    content: Optional[bytes]
    content_type: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and bool(self.content)


@dataclass(frozen=True)
class NamingContext:
    title_slug: str
    password_slug: str
    stamp: str

    @classmethod
    def for_request(
        cls,
        title: str,
        password: Optional[str] = None,
        now: Optional[datetime] = None,
        token: Optional[str] = None,
    ) -> "NamingContext":
        now = now or datetime.now(timezone.utc)
        token = token or uuid.uuid4().hex[:8]
        return cls(
            title_slug=slugify(title, fallback="untitled"),
            password_slug=slugify(password),
            stamp=f"{now.strftime('%Y-%m-%d_%H%M%S')}_{token}",
        )

    def member_name(self, index: int, original_name: str) -> str:
        ext = slugify(PurePosixPath(original_name).suffix.lstrip("."))
        base = f"{index}_{self.title_slug}_{self.stamp}"
        return f"{base}.{ext}" if ext else base

    def archive_name(self) -> str:
        parts = [p for p in (self.password_slug, self.title_slug, self.stamp) if p]
        return "_".join(parts) + ".zip"


@dataclass
class ArchiveResult:
    archive_path: str
    entry_names: list[str]
    # Loose files that survived deletion; the caller queues them for retry
    undeleted_sources: list[str] = field(default_factory=list)


class Compensations:
    """Undo actions registered while a multi-step operation progresses."""

    def __init__(self):
        self._actions: list[tuple[str, Callable[[], Awaitable]]] = []

    def push(self, description: str, action: Callable[[], Awaitable]) -> None:
        self._actions.append((description, action))

    async def unwind(self) -> None:
        """Run registered actions newest first. Failures are logged, not raised."""
        while self._actions:
            description, action = self._actions.pop()
            try:
                await action()
            except StorageError as e:
                logger.error(f"Compensation '{description}' failed: {e.message}")


def _open_archive(archive_file: Path) -> zipfile.ZipFile:
    """Create the archive file exclusively; an existing file is never reused."""
    try:
        return zipfile.ZipFile(archive_file, mode="x", compression=zipfile.ZIP_DEFLATED)
    except OSError as e:
        raise ArchiveCreateError(
            "Failed to create ZIP file",
            details={"archive": archive_file.name, "reason": str(e)},
        ) from e


def _fill_archive(zf: zipfile.ZipFile, members: list[Path]) -> list[str]:
    """Blocking ZIP writer, run in a worker thread. Closes the archive."""
    entry_names: list[str] = []
    try:
        with zf:
            for member in members:
                zf.write(member, arcname=member.name)
                entry_names.append(member.name)
    except OSError as e:
        raise ArchiveCreateError(
            "Failed to write ZIP file",
            details={"archive": PurePosixPath(zf.filename).name, "reason": str(e)},
        ) from e
    return entry_names


class UploadArchiver:
    """Turns the files of one request into a single stored archive."""

    def __init__(self, storage: FileStorageService, upload_dir: Optional[str] = None):
        self.storage = storage
        self.upload_dir = upload_dir or settings.UPLOAD_DIR

    async def archive(self, payloads: list[FilePayload], naming: NamingContext) -> ArchiveResult:
        logger.info(f"Files received: {[p.filename for p in payloads]}")
        await self.storage.ensure_dir(self.upload_dir)

        compensations = Compensations()
        stored: list[str] = []
        try:
            index = 1
            for payload in payloads:
                if not payload.is_valid:
                    logger.warning(
                        f"Skipping invalid upload {payload.filename!r}: {payload.error or 'empty file'}"
                    )
                    continue
                name = naming.member_name(index, payload.filename)
                path = await self.storage.save(payload.content, f"{self.upload_dir}/{name}")
                compensations.push(f"delete {path}", lambda p=path: self.storage.delete(p))
                stored.append(path)
                logger.info(f"Valid file uploaded: {payload.filename!r} -> {path}")
                index += 1

            if not stored:
                raise NoValidFilesError(
                    "No files to download",
                    details={"received": len(payloads)},
                )

            archive_path = f"{self.upload_dir}/{naming.archive_name()}"
            zf = await asyncio.to_thread(_open_archive, self.storage.resolve(archive_path))
            compensations.push(f"delete {archive_path}", lambda: self.storage.delete(archive_path))
            entry_names = await asyncio.to_thread(
                _fill_archive, zf, [self.storage.resolve(p) for p in stored]
            )
        except BaseException:
            # Also runs when the request task is cancelled mid-write
            await compensations.unwind()
            raise

        logger.info(f"Created archive {archive_path} with {len(entry_names)} file(s)")

        undeleted: list[str] = []
        for path in stored:
            try:
                await self.storage.delete(path)
            except StorageError as e:
                logger.error(f"Could not remove archived source {path}: {e.message}")
                undeleted.append(path)

        return ArchiveResult(
            archive_path=archive_path,
            entry_names=entry_names,
            undeleted_sources=undeleted,
        )


upload_archiver = UploadArchiver(file_storage)
