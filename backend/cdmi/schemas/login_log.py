"""Login log request/response schemas."""
from typing import Optional
from datetime import datetime
from pydantic import Field
from cdmi.schemas.base import CamelModel, CamelORMModel


class LoginLogCreate(CamelModel):
    username: str = Field(min_length=1, max_length=255)
    login_time: Optional[datetime] = None
    platform: Optional[str] = Field(default=None, max_length=100)
    language: Optional[str] = Field(default=None, max_length=50)
    online: Optional[bool] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    cookies_enabled: Optional[bool] = None
    hardware_concurrency: Optional[int] = None
    device_memory: Optional[float] = None
    brands: Optional[list] = None
    mobile: Optional[bool] = None


class LoginLogResponse(CamelORMModel):
    id: int
    username: str
    ip: Optional[str] = None
    login_time: Optional[datetime] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    online: Optional[bool] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    cookies_enabled: Optional[bool] = None
    hardware_concurrency: Optional[int] = None
    device_memory: Optional[float] = None
    brands: Optional[list] = None
    mobile: Optional[bool] = None
    created_at: datetime
