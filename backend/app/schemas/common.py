"""Common schemas used across the application."""

from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class CursorPaginatedResponse(BaseModel, Generic[T]):
    """Cursor-based paginated response.

    Batch ids are dense and ascending, so the id of the last item is the
    cursor for the next page (`?after=<next_cursor>`).  No OFFSET scan.
    """
    items: list[T]
    total: int
    limit: int
    next_cursor: int | None = None
    has_more: bool
