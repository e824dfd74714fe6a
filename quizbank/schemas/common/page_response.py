from pydantic import BaseModel
from typing import List, Generic, TypeVar

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    page: int
    size: int
    total: int
    has_next: bool
    has_prev: bool
    items: List[T]
