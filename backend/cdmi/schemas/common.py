"""Shared Pydantic schemas."""
import math
from typing import Generic, TypeVar

from cdmi.schemas.base import CamelModel

T = TypeVar("T")


class Page(CamelModel, Generic[T]):
    """Page envelope: {data, total, currentPage, lastPage, perPage}."""
    data: list[T]
    total: int
    current_page: int
    last_page: int
    per_page: int

    @classmethod
    def build(cls, data: list, total: int, page: int, per_page: int) -> "Page":
        last_page = max(1, math.ceil(total / per_page)) if per_page else 1
        return cls(
            data=data,
            total=total,
            current_page=page,
            last_page=last_page,
            per_page=per_page,
        )
