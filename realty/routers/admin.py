"""
Administration endpoints: dashboard, listing moderation and the user directory.
Every route requires an admin bearer token.
"""

from fastapi import APIRouter, Depends, Query, Path
from typing import Optional
from uuid import UUID

from realty.config import settings
from realty.models.user import User
from realty.services.listing import ListingService
from realty.services.moderation import ModerationService
from realty.services.search import SearchService, parse_admin_criteria
from realty.services.user import UserService
from realty.schemas.admin import DashboardResponse, DashboardStats
from realty.schemas.listing import (
    ListingResponse,
    ListingListResponse,
    ListingMutationResponse,
    StatusUpdateRequest,
    listing_page
)
from realty.schemas.user import (
    UserResponse,
    UserWithListingCount,
    UserListResponse,
    RoleUpdateRequest,
    UserMutationResponse,
    MessageResponse
)
from realty.schemas.pagination import page_fields
from realty.schemas.error import get_error_responses
from realty.utils.dependencies import (
    get_current_admin_user,
    get_listing_service,
    get_moderation_service,
    get_search_service,
    get_user_service
)


router = APIRouter(prefix="/admin", tags=["Administration"])


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Admin dashboard",
    responses=get_error_responses(401, 403)
)
async def dashboard(
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
) -> DashboardResponse:
    stats = await user_service.dashboard_stats()
    recent = await user_service.recent_listings(settings.dashboard_recent_count)

    return DashboardResponse(
        stats=DashboardStats(**stats),
        recent_properties=[ListingResponse.model_validate(listing) for listing in recent]
    )


@router.get(
    "/properties",
    response_model=ListingListResponse,
    summary="Moderation queue",
    description="All listings filtered by status and city, newest first, 20 per page.",
    responses=get_error_responses(401, 403, 422)
)
async def list_all_properties(
    status: Optional[str] = Query(None, description="pending, published or archived"),
    city: Optional[str] = Query(None, description="Case-insensitive substring of the city"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_admin_user),
    search_service: SearchService = Depends(get_search_service)
) -> ListingListResponse:
    criteria = parse_admin_criteria({"status": status, "city": city})
    result = await search_service.search_for_admin(criteria, page, settings.admin_page_size)
    return listing_page(result)


@router.patch(
    "/properties/{property_id}",
    response_model=ListingMutationResponse,
    summary="Set listing status",
    responses=get_error_responses(401, 403, 404, 422)
)
async def update_property_status(
    payload: StatusUpdateRequest,
    property_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_admin_user),
    listing_service: ListingService = Depends(get_listing_service),
    moderation_service: ModerationService = Depends(get_moderation_service)
) -> ListingMutationResponse:
    listing = await listing_service.find(property_id)
    listing = await moderation_service.set_status(current_user, listing, payload.status)

    return ListingMutationResponse(
        message="Property status updated successfully.",
        listing=ListingResponse.model_validate(listing)
    )


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="User directory",
    description="Users filtered by role and by a name or email substring, newest first, 20 per page.",
    responses=get_error_responses(401, 403, 422)
)
async def list_users(
    role: Optional[str] = Query(None, description="client, agent or admin"),
    search: Optional[str] = Query(None, description="Substring of the name or email"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
) -> UserListResponse:
    rows, total = await user_service.search_users(role, search, page, settings.admin_page_size)

    items = []
    for user, listings_count in rows:
        item = UserWithListingCount.model_validate(user)
        item.properties_count = listings_count
        items.append(item)

    return UserListResponse(items=items, **page_fields(total, page, settings.admin_page_size))


@router.patch(
    "/users/{user_id}",
    response_model=UserMutationResponse,
    summary="Change user role",
    responses=get_error_responses(401, 403, 404, 409, 422)
)
async def update_user_role(
    payload: RoleUpdateRequest,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
) -> UserMutationResponse:
    target = await user_service.find_by_id(user_id)
    user = await user_service.update_role(current_user, target, payload.role)

    return UserMutationResponse(
        message="User role updated successfully.",
        user=UserResponse.model_validate(user)
    )


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
    description="Deletes the user together with every listing they own and its images.",
    responses=get_error_responses(401, 403, 404, 409)
)
async def delete_user(
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    user_service: UserService = Depends(get_user_service)
) -> MessageResponse:
    target = await user_service.find_by_id(user_id)
    await user_service.delete_user(current_user, target)
    return MessageResponse(message="User and their properties deleted successfully.")
