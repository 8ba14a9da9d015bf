"""
Repository layer for data access operations.
"""

from realty.repositories.base import BaseRepository
from realty.repositories.listing import ListingRepository, ListingSearchFilters
from realty.repositories.image import ImageRepository
from realty.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "ListingRepository",
    "ListingSearchFilters",
    "ImageRepository",
    "UserRepository"
]
