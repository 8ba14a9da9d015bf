"""
Service layer for business logic implementation.
Contains services for authentication, listings, moderation, search, users and error handling.
"""

from .auth import AuthService
from .listing import ListingService
from .moderation import ModerationService
from .search import SearchService, SearchPage
from .user import UserService
from .image import ImageStorage, ImageUpload
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "ListingService",
    "ModerationService",
    "SearchService",
    "SearchPage",
    "UserService",
    "ImageStorage",
    "ImageUpload",
    "ErrorHandlerService"
]
