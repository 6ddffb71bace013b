"""Response envelopes shared by every router."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_records: int
    has_next_page: bool
    has_previous_page: bool


class PaginatedData(BaseModel, Generic[T]):
    items: List[T]
    pagination: Pagination
