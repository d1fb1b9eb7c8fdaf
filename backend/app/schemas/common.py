"""
Shared pydantic building blocks.
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationInfo(CamelModel):
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Page size")
    total: int = Field(..., description="Total matching items")
    total_pages: int = Field(..., description="Number of pages")
    has_next: bool
    has_prev: bool


class Envelope(CamelModel, Generic[T]):
    """Standard ``{message, data}`` response body."""
    message: Optional[str] = None
    data: T
