"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    LoginResponse,
    RegisterResponse
)

# User schemas
from .user import (
    UserCreate,
    UserResponse,
    UserSummary,
    UserWithListingCount,
    UserListResponse,
    RoleUpdateRequest,
    UserMutationResponse,
    MessageResponse
)

# Listing schemas
from .listing import (
    ListingCreate,
    ListingUpdate,
    StatusUpdateRequest,
    ListingResponse,
    ListingListResponse,
    ListingMutationResponse,
    ListingEditResponse,
    HomeResponse,
    collect_field_errors
)

from .image import ListingImageResponse
from .admin import DashboardStats, DashboardResponse
from .pagination import PageMeta, page_fields
from .error import APIErrorResponse, ErrorDetail, ErrorResponse, get_error_responses

__all__ = [
    # Authentication
    "LoginRequest",
    "TokenResponse",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "LoginResponse",
    "RegisterResponse",

    # User
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "UserWithListingCount",
    "UserListResponse",
    "RoleUpdateRequest",
    "UserMutationResponse",
    "MessageResponse",

    # Listing
    "ListingCreate",
    "ListingUpdate",
    "StatusUpdateRequest",
    "ListingResponse",
    "ListingListResponse",
    "ListingMutationResponse",
    "ListingEditResponse",
    "HomeResponse",
    "collect_field_errors",
    "ListingImageResponse",

    # Admin
    "DashboardStats",
    "DashboardResponse",

    # Shared
    "PageMeta",
    "page_fields",
    "APIErrorResponse",
    "ErrorDetail",
    "ErrorResponse",
    "get_error_responses",
]
