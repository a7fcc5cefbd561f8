"""Row item request/response schemas."""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from cdmi.schemas.base import CamelModel, CamelORMModel


class RowItemCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)
    fingerprint: str = Field(min_length=1, max_length=255)

    @field_validator("title", "fingerprint", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v


class RowItemUpdate(CamelModel):
    """Only fields that were provided are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


class RowItemResponse(CamelORMModel):
    id: int
    title: str
    description: Optional[str] = None
    owner_ip: Optional[str] = None
    fingerprint: str
    file_paths: list[str] = []
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("file_paths", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v if v is not None else []


class RowItemDeleteResponse(BaseModel):
    message: str
    data: RowItemResponse
