"""PendingBlobDeletion model - blob deletions that failed and await retry."""
from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from cdmi.models.base import Base


class PendingBlobDeletion(Base):
    __tablename__ = "pending_blob_deletions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
