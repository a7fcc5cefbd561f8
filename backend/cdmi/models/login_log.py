"""LoginLog model - client environment captured at login time."""
from datetime import datetime
from sqlalchemy import String, Integer, Float, Boolean, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from cdmi.models.base import Base, TimestampMixin


class LoginLog(Base, TimestampMixin):
    __tablename__ = "login_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    login_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    platform: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language: Mapped[str | None] = mapped_column(String(50), nullable=True)
    online: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    screen_width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    screen_height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cookies_enabled: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    hardware_concurrency: Mapped[int | None] = mapped_column(Integer, nullable=True)
    device_memory: Mapped[float | None] = mapped_column(Float, nullable=True)
    brands: Mapped[list | None] = mapped_column(JSON, nullable=True)
    mobile: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
