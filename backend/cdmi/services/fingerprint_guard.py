"""Fingerprint block-list gating row submissions.

A fingerprint is an opaque device token sent by the frontend. The first
submission bearing an unseen token registers it as not blocked; an
administrator can later toggle the block flag.
"""
import logging
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.models.fingerprint import FingerprintEntry

logger = logging.getLogger(__name__)


class GuardOutcome(str, Enum):
    ALLOWED = "allowed"
    BLOCKED = "blocked"


async def find_entry(db: AsyncSession, fingerprint: str) -> Optional[FingerprintEntry]:
    result = await db.execute(
        select(FingerprintEntry).where(FingerprintEntry.fingerprint == fingerprint)
    )
    return result.scalar_one_or_none()


async def check(db: AsyncSession, fingerprint: str) -> GuardOutcome:
    """Look up a fingerprint, registering it on first sight.

    Known, unblocked fingerprints cause no write.
    """
    entry = await find_entry(db, fingerprint)
    if entry is not None:
        if entry.is_blocked:
            logger.warning(f"Blocked fingerprint {fingerprint!r} attempted a submission")
            return GuardOutcome.BLOCKED
        return GuardOutcome.ALLOWED

    db.add(FingerprintEntry(fingerprint=fingerprint, is_blocked=False, name=None))
    try:
        await db.commit()
    except IntegrityError:
        # Another request registered it first; its entry stands
        await db.rollback()
        entry = await find_entry(db, fingerprint)
        if entry is not None and entry.is_blocked:
            return GuardOutcome.BLOCKED
        return GuardOutcome.ALLOWED

    logger.info(f"Registered new fingerprint {fingerprint!r}")
    return GuardOutcome.ALLOWED


async def toggle_block(db: AsyncSession, fingerprint: str) -> Optional[FingerprintEntry]:
    """Flip is_blocked. Returns None (and writes nothing) for unseen fingerprints."""
    entry = await find_entry(db, fingerprint)
    if entry is None:
        return None

    entry.is_blocked = not entry.is_blocked
    await db.commit()
    await db.refresh(entry)
    logger.info(
        f"Fingerprint {fingerprint!r} is now {'blocked' if entry.is_blocked else 'unblocked'}"
    )
    return entry


async def rename(db: AsyncSession, fingerprint: str, name: Optional[str]) -> Optional[FingerprintEntry]:
    """Set the administrator label of a known fingerprint."""
    entry = await find_entry(db, fingerprint)
    if entry is None:
        return None

    entry.name = name
    await db.commit()
    await db.refresh(entry)
    return entry


async def list_entries(db: AsyncSession) -> list[FingerprintEntry]:
    result = await db.execute(
        select(FingerprintEntry).order_by(FingerprintEntry.created_at.desc(), FingerprintEntry.id.desc())
    )
    return list(result.scalars().all())
