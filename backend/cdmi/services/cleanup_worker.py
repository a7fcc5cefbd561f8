"""Background retry of blob deletions that failed.

Deleting loose files after archiving, and deleting blobs on hard delete, are
best-effort: a failure must not abort the surrounding request. Failed paths
are recorded in ``pending_blob_deletions`` and this worker retries them.
Runs as an asyncio task within the FastAPI process.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.config import settings
from cdmi.database import async_session
from cdmi.errors import StorageError
from cdmi.models.pending_deletion import PendingBlobDeletion
from cdmi.services.file_storage import FileStorageService, file_storage

logger = logging.getLogger(__name__)


def enqueue_blob_deletions(db: AsyncSession, paths: list[str], reason: str) -> None:
    """Stage retry entries on the caller's session; they commit with the caller's transaction."""
    for path in paths:
        db.add(PendingBlobDeletion(storage_path=path, reason=reason, attempts=0))
    if paths:
        logger.warning(f"Queued {len(paths)} blob deletion(s) for retry ({reason})")


async def retry_pending_deletions(
    storage: FileStorageService = file_storage,
    max_attempts: Optional[int] = None,
) -> int:
    """Attempt every pending deletion once. Returns how many were resolved."""
    max_attempts = max_attempts or settings.CLEANUP_MAX_ATTEMPTS
    resolved = 0
    async with async_session() as db:
        result = await db.execute(
            select(PendingBlobDeletion)
            .where(PendingBlobDeletion.attempts < max_attempts)
            .order_by(PendingBlobDeletion.id)
        )
        for pending in result.scalars().all():
            pending.last_attempt_at = datetime.now(timezone.utc)
            try:
                await storage.delete(pending.storage_path)
            except StorageError as e:
                pending.attempts += 1
                pending.last_error = e.message
                if pending.attempts >= max_attempts:
                    logger.error(
                        f"Giving up on deleting {pending.storage_path} after {pending.attempts} attempts: {e.message}"
                    )
                continue
            await db.delete(pending)
            resolved += 1
        await db.commit()

    if resolved:
        logger.info(f"Removed {resolved} pending blob(s)")
    return resolved


async def worker_loop():
    """Retry pending deletions forever, sleeping between passes."""
    logger.info("Blob cleanup worker started")
    while True:
        try:
            await retry_pending_deletions()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Cleanup worker error: {e}")
        await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)
