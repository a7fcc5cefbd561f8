"""RowItem model - uploaded content entry (archive bytes live in blob storage)."""
from sqlalchemy import String, Text, Boolean, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from cdmi.models.base import Base, TimestampMixin


class RowItem(Base, TimestampMixin):
    __tablename__ = "row_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    fingerprint: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # Store-relative blob paths, ordered; a single archive after create
    file_paths: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_row_items_created_at", "created_at"),
    )
