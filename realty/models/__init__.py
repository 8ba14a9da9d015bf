"""
Database models for the Realty Marketplace API.
Includes User, Listing and ListingImage models with relationships.
"""

from realty.models.user import User, UserRole
from realty.models.listing import Listing, ListingStatus
from realty.models.image import ListingImage

__all__ = [
    "User",
    "UserRole",
    "Listing",
    "ListingStatus",
    "ListingImage",
]
