"""Fingerprint block-list API routes (administrative)."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.database import get_db
from cdmi.errors import NotFoundError
from cdmi.schemas.fingerprint import FingerprintRename, FingerprintResponse
from cdmi.services import fingerprint_guard

router = APIRouter(prefix="/api/fingerprints", tags=["fingerprints"])


@router.get("", response_model=list[FingerprintResponse])
async def list_fingerprints(db: AsyncSession = Depends(get_db)):
    """List all known fingerprints, newest first."""
    return await fingerprint_guard.list_entries(db)


@router.post("/{fingerprint}/toggle-block", response_model=FingerprintResponse)
async def toggle_block(fingerprint: str, db: AsyncSession = Depends(get_db)):
    """Block a fingerprint, or unblock it if already blocked."""
    entry = await fingerprint_guard.toggle_block(db, fingerprint)
    if entry is None:
        raise NotFoundError("Fingerprint not found", details={"fingerprint": fingerprint})
    return entry


@router.put("/{fingerprint}", response_model=FingerprintResponse)
async def rename_fingerprint(
    fingerprint: str,
    body: FingerprintRename,
    db: AsyncSession = Depends(get_db),
):
    """Set the administrator label of a fingerprint."""
    entry = await fingerprint_guard.rename(db, fingerprint, body.name)
    if entry is None:
        raise NotFoundError("Fingerprint not found", details={"fingerprint": fingerprint})
    return entry
