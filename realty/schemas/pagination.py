"""
Shared pagination metadata for list responses.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict
import math


class PageMeta(BaseModel):
    """Pagination fields shared by every paginated response."""

    total: int = Field(..., description="Total number of matching records", examples=[150])
    page: int = Field(..., description="Current page number (1-indexed)", examples=[1])
    page_size: int = Field(..., description="Number of records per page", examples=[12])
    total_pages: int = Field(..., description="Total number of pages", examples=[13])
    has_next: bool = Field(..., description="Whether there are more pages")
    has_previous: bool = Field(..., description="Whether there are previous pages")


def page_fields(total: int, page: int, page_size: int) -> Dict[str, Any]:
    """Compute PageMeta values for a result set."""
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    return {
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }
