"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Consistent JSON envelope for API responses."""

    data: T


class Page(BaseModel, Generic[T]):
    """Offset-paginated list payload."""

    items: list[T]
    total: int
    limit: int
    offset: int


class DeleteResult(BaseModel):
    """Generic delete response payload."""

    id: int
    deleted: bool


class ErrorItem(BaseModel):
    """Field-level error detail."""

    path: str
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned by exception handlers."""

    status: str
    message: str
    errors: list[ErrorItem] = []
    error_id: str | None = None
