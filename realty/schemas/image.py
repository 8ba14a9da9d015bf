"""
Pydantic schemas for listing images.
"""

from pydantic import BaseModel, computed_field
from typing import Optional
from datetime import datetime
from realty.config import settings
import uuid


class ListingImageResponse(BaseModel):
    """Image attached to a listing, with its public URL."""

    id: uuid.UUID
    path: str
    alt_text: Optional[str] = None
    sort_order: int
    created_at: datetime

    @computed_field
    @property
    def url(self) -> str:
        return f"{settings.storage_url_prefix}/{self.path}"

    class Config:
        from_attributes = True
