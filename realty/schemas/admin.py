"""
Pydantic schemas for the admin dashboard.
"""

from pydantic import BaseModel, Field
from typing import List
from realty.schemas.listing import ListingResponse


class DashboardStats(BaseModel):
    """Listing and user counters shown on the admin dashboard."""

    total_properties: int = Field(..., examples=[120])
    pending_properties: int = Field(..., examples=[8])
    published_properties: int = Field(..., examples=[100])
    archived_properties: int = Field(..., examples=[12])
    total_users: int = Field(..., examples=[64])
    agents: int = Field(..., examples=[10])
    clients: int = Field(..., examples=[50])
    admins: int = Field(..., examples=[4])


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_properties: List[ListingResponse]
