"""Fingerprint block-list schemas."""
from typing import Optional
from datetime import datetime
from pydantic import Field
from cdmi.schemas.base import CamelModel, CamelORMModel


class FingerprintRename(CamelModel):
    name: Optional[str] = Field(default=None, max_length=255)


class FingerprintResponse(CamelORMModel):
    id: int
    fingerprint: str
    name: Optional[str] = None
    is_blocked: bool
    created_at: datetime
    updated_at: datetime
