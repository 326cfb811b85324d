from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None
    pagination: Pagination | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errors: list[dict] = Field(default_factory=list)
