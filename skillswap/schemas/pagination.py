import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginationMeta(BaseModel):
    current: int
    pages: int
    total: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(current=page, pages=math.ceil(total / limit) if limit else 0, total=total)


class Page(BaseModel, Generic[T]):
    items: list[T]
    pagination: PaginationMeta
