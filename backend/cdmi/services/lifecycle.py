"""Row item lifecycle: create, read, list, update, soft delete, hard delete, download.

State per row:
    Active --toggle--> SoftDeleted --toggle--> Active
    Active | SoftDeleted --hard delete--> Gone

Create archives all uploaded files into one ZIP. Update stores new files
individually and appends their paths; it never re-archives.
"""
import asyncio
import hmac
import logging
import weakref
from pathlib import Path, PurePosixPath
from typing import Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.config import settings
from cdmi.errors import (
    ForbiddenError,
    MissingBlobError,
    NoContentError,
    NotFoundError,
    StorageError,
)
from cdmi.models.row_item import RowItem
from cdmi.schemas.row_item import RowItemCreate, RowItemUpdate
from cdmi.services import fingerprint_guard
from cdmi.services.archiver import (
    Compensations,
    FilePayload,
    NamingContext,
    UploadArchiver,
    upload_archiver,
)
from cdmi.services.cleanup_worker import enqueue_blob_deletions
from cdmi.services.file_storage import FileStorageService, file_storage
from cdmi.services.fingerprint_guard import GuardOutcome

logger = logging.getLogger(__name__)

# Serializes mutations of one row within this process. Entries vanish once
# no request holds the lock.
_row_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def _row_lock(row_id: int) -> asyncio.Lock:
    lock = _row_locks.get(row_id)
    if lock is None:
        lock = asyncio.Lock()
        _row_locks[row_id] = lock
    return lock


class RecordLifecycleManager:
    """Orchestrates fingerprint guard, archiver and row storage."""

    def __init__(self, storage: FileStorageService, archiver: UploadArchiver):
        self.storage = storage
        self.archiver = archiver

    @property
    def upload_dir(self) -> str:
        return self.archiver.upload_dir

    @property
    def deleted_dir(self) -> str:
        return f"{self.upload_dir}/{settings.DELETED_SUBDIR}"

    # ── Create / read ────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        fields: RowItemCreate,
        payloads: list[FilePayload],
        owner_ip: Optional[str] = None,
    ) -> RowItem:
        """Create a row, archiving any uploaded files into a single ZIP."""
        outcome = await fingerprint_guard.check(db, fields.fingerprint)
        if outcome is GuardOutcome.BLOCKED:
            raise ForbiddenError(
                "You are blocked and cannot proceed.",
                details={"fingerprint": fields.fingerprint},
            )

        file_paths: list[str] = []
        undeleted: list[str] = []
        if payloads:
            naming = NamingContext.for_request(fields.title, fields.password)
            result = await self.archiver.archive(payloads, naming)
            file_paths = [result.archive_path]
            undeleted = result.undeleted_sources

        row = RowItem(
            title=fields.title,
            description=fields.description,
            password=fields.password,
            owner_ip=owner_ip,
            fingerprint=fields.fingerprint,
            file_paths=file_paths,
            is_deleted=False,
        )
        db.add(row)
        enqueue_blob_deletions(db, undeleted, reason="archive_source")
        try:
            await db.commit()
        except SQLAlchemyError:
            # The rollback also dropped the queued retries for undeleted sources
            await db.rollback()
            await self._discard([*file_paths, *undeleted])
            raise

        await db.refresh(row)
        logger.info(f"Created row item {row.id} with {len(file_paths)} stored file(s)")
        return row

    async def get(self, db: AsyncSession, row_id: int) -> RowItem:
        row = await db.get(RowItem, row_id)
        if row is None:
            raise NotFoundError("Row item not found", details={"id": row_id})
        return row

    async def list_rows(
        self,
        db: AsyncSession,
        include_deleted: bool = False,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> tuple[list[RowItem], int]:
        """Newest-first page of rows plus the total count."""
        per_page = per_page or settings.DEFAULT_PAGE_SIZE
        query = select(RowItem)
        count_query = select(func.count()).select_from(RowItem)
        if not include_deleted:
            query = query.where(RowItem.is_deleted.is_(False))
            count_query = count_query.where(RowItem.is_deleted.is_(False))

        total = await db.scalar(count_query) or 0
        result = await db.execute(
            query.order_by(desc(RowItem.created_at), desc(RowItem.id))
            .limit(per_page)
            .offset((page - 1) * per_page)
        )
        return list(result.scalars().all()), total

    # ── Mutations ────────────────────────────────────────────────

    async def update(
        self,
        db: AsyncSession,
        row_id: int,
        fields: RowItemUpdate,
        payloads: Optional[list[FilePayload]] = None,
    ) -> RowItem:
        """Apply provided fields and append newly uploaded files as loose blobs."""
        async with _row_lock(row_id):
            row = await self._get_for_update(db, row_id)

            for key, value in fields.model_dump(exclude_none=True).items():
                setattr(row, key, value)

            new_paths: list[str] = []
            # Files of a soft-deleted row live in the delete/ sub-path
            directory = self.deleted_dir if row.is_deleted else self.upload_dir
            try:
                for payload in payloads or []:
                    if not payload.is_valid:
                        logger.warning(f"Skipping invalid upload {payload.filename!r} for row {row_id}")
                        continue
                    new_paths.append(
                        await self.storage.save_unique(payload.content, payload.filename, directory)
                    )
                if new_paths:
                    row.file_paths = [*(row.file_paths or []), *new_paths]
                await db.commit()
            except (StorageError, SQLAlchemyError):
                await db.rollback()
                await self._discard(new_paths)
                raise

            await db.refresh(row)
            return row

    async def toggle_soft_delete(self, db: AsyncSession, row_id: int) -> RowItem:
        """Move a row's files into delete/ (or back out) and flip is_deleted."""
        async with _row_lock(row_id):
            row = await self._get_for_update(db, row_id)
            restoring = row.is_deleted

            compensations = Compensations()
            new_paths: list[str] = []
            try:
                for path in row.file_paths or []:
                    target = self._restored_path(path) if restoring else self._trashed_path(path)
                    new_paths.append(target)
                    if target == path:
                        continue
                    if not await self.storage.exists(path):
                        logger.warning(f"Blob {path} is missing; recording {target} without moving")
                        continue
                    await self.storage.move(path, target)
                    compensations.push(
                        f"move {target} back to {path}",
                        lambda src=target, dst=path: self.storage.move(src, dst),
                    )

                row.file_paths = new_paths
                row.is_deleted = not restoring
                await db.commit()
            except (StorageError, SQLAlchemyError):
                await db.rollback()
                await compensations.unwind()
                raise

            await db.refresh(row)
            logger.info(f"Row item {row_id} {'restored' if restoring else 'soft-deleted'}")
            return row

    async def hard_delete(
        self,
        db: AsyncSession,
        row_id: int,
        credential: Optional[str] = None,
    ) -> RowItem:
        """Remove a row and its blobs. Returns the deleted row."""
        async with _row_lock(row_id):
            row = await self._get_for_update(db, row_id)

            if settings.DELETE_REQUIRES_CREDENTIAL or credential is not None:
                if not self._credential_matches(row, credential):
                    raise ForbiddenError(
                        "You are not authorized to delete this item.",
                        details={"id": row_id},
                    )

            failed: list[str] = []
            for path in row.file_paths or []:
                try:
                    if not await self.storage.delete(path):
                        logger.warning(f"Blob {path} of row {row_id} was already missing")
                except StorageError as e:
                    logger.error(f"Could not delete blob {path} of row {row_id}: {e.message}")
                    failed.append(path)

            enqueue_blob_deletions(db, failed, reason="hard_delete")
            await db.delete(row)
            await db.commit()
            logger.info(f"Row item {row_id} deleted")
            return row

    async def download_path(self, db: AsyncSession, row_id: int) -> Path:
        """Absolute path of the first stored file of a row."""
        row = await self.get(db, row_id)
        paths = row.file_paths or []
        if not paths:
            raise NoContentError("No file path found", details={"id": row_id})

        path = paths[0]
        if not await self.storage.exists(path):
            logger.warning(f"Row item {row_id} references missing blob {path}")
            raise MissingBlobError(path)
        return self.storage.resolve(path)

    # ── Helpers ──────────────────────────────────────────────────

    async def _get_for_update(self, db: AsyncSession, row_id: int) -> RowItem:
        result = await db.execute(
            select(RowItem).where(RowItem.id == row_id).with_for_update()
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError("Row item not found", details={"id": row_id})
        return row

    def _trashed_path(self, path: str) -> str:
        p = PurePosixPath(path)
        if p.parent.name == settings.DELETED_SUBDIR:
            return path
        return str(p.parent / settings.DELETED_SUBDIR / p.name)

    def _restored_path(self, path: str) -> str:
        p = PurePosixPath(path)
        if p.parent.name != settings.DELETED_SUBDIR:
            return path
        return str(p.parent.parent / p.name)

    @staticmethod
    def _credential_matches(row: RowItem, credential: Optional[str]) -> bool:
        if not credential:
            return False
        supplied = credential.encode()
        if row.password and hmac.compare_digest(supplied, row.password.encode()):
            return True
        secret = settings.DELETE_OVERRIDE_SECRET
        return bool(secret) and hmac.compare_digest(supplied, secret.encode())

    async def _discard(self, paths: list[str]) -> None:
        for path in paths:
            try:
                await self.storage.delete(path)
            except StorageError as e:
                logger.error(f"Could not discard {path}: {e.message}")


lifecycle = RecordLifecycleManager(file_storage, upload_archiver)
