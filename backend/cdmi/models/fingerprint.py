"""FingerprintEntry model - device fingerprint block-list."""
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from cdmi.models.base import Base, TimestampMixin


class FingerprintEntry(Base, TimestampMixin):
    __tablename__ = "fingerprints"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    fingerprint: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
