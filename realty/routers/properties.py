"""
Property listing endpoints: public browsing, detail view and the agent/admin write path.
Listing fields arrive as multipart form fields with files under ``images``.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Form, File, UploadFile
from typing import Optional, List, Dict, Any
from uuid import UUID

from realty.config import settings
from realty.models.user import User
from realty.models.listing import ListingStatus
from realty.services import policy
from realty.services.image import ImageUpload
from realty.services.listing import ListingService
from realty.services.search import SearchService, parse_criteria
from realty.schemas.listing import (
    ListingResponse,
    ListingListResponse,
    ListingMutationResponse,
    ListingEditResponse,
    listing_page
)
from realty.schemas.user import MessageResponse
from realty.schemas.error import get_error_responses
from realty.utils.dependencies import (
    get_current_user,
    get_optional_current_user,
    get_listing_service,
    get_search_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])


async def read_images(images: Optional[List[UploadFile]]) -> List[ImageUpload]:
    """Load uploaded files into memory, skipping empty file inputs."""
    uploads = []
    for file in images or []:
        if not file.filename:
            continue
        uploads.append(await ImageUpload.from_upload_file(file))
    return uploads


def form_attributes(**fields: Optional[str]) -> Dict[str, Any]:
    """Keep only the form fields that were actually submitted."""
    return {name: value for name, value in fields.items() if value is not None}


@router.get(
    "",
    response_model=ListingListResponse,
    summary="Browse published listings",
    description="Paginated search over published listings, newest first, 12 per page.",
    responses=get_error_responses(422)
)
async def list_properties(
    city: Optional[str] = Query(None, description="Case-insensitive substring of the city"),
    min_price: Optional[str] = Query(None, description="Minimum price, inclusive"),
    max_price: Optional[str] = Query(None, description="Maximum price, inclusive"),
    min_surface: Optional[str] = Query(None, description="Minimum surface in square meters, inclusive"),
    max_surface: Optional[str] = Query(None, description="Maximum surface in square meters, inclusive"),
    bedrooms: Optional[str] = Query(None, description="Exact number of bedrooms"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    search_service: SearchService = Depends(get_search_service)
) -> ListingListResponse:
    criteria = parse_criteria({
        "city": city,
        "min_price": min_price,
        "max_price": max_price,
        "min_surface": min_surface,
        "max_surface": max_surface,
        "bedrooms": bedrooms
    })
    result = await search_service.search_published(criteria, page, settings.public_page_size)
    return listing_page(result)


@router.post(
    "",
    response_model=ListingMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Create a listing with images. Agents' listings await approval; admins' are published.",
    responses=get_error_responses(401, 403, 422)
)
async def create_property(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    surface_area: Optional[str] = Form(None),
    bedrooms: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    neighborhood: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingMutationResponse:
    attributes = form_attributes(
        title=title,
        description=description,
        price=price,
        surface_area=surface_area,
        bedrooms=bedrooms,
        city=city,
        neighborhood=neighborhood
    )
    listing = await listing_service.create_listing(current_user, attributes, await read_images(images))

    message = "Property listed successfully!"
    if listing.status == ListingStatus.PENDING:
        message += " It will be published after admin approval."

    return ListingMutationResponse(message=message, listing=ListingResponse.model_validate(listing))


@router.get(
    "/{property_id}",
    response_model=ListingResponse,
    summary="View listing",
    description="Published listings are public; others are visible to their owner and to admins.",
    responses=get_error_responses(403, 404)
)
async def get_property(
    property_id: UUID = Path(..., description="Listing ID"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.get_listing(current_user, property_id)
    return ListingResponse.model_validate(listing)


@router.get(
    "/{property_id}/edit",
    response_model=ListingEditResponse,
    summary="Edit form payload",
    responses=get_error_responses(401, 403, 404)
)
async def edit_property(
    property_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingEditResponse:
    listing = await listing_service.get_for_edit(current_user, property_id)
    can_change_status = policy.can_moderate(current_user)

    return ListingEditResponse(
        listing=ListingResponse.model_validate(listing),
        can_change_status=can_change_status,
        statuses=ListingStatus.values() if can_change_status else []
    )


@router.post(
    "/{property_id}/edit",
    response_model=ListingMutationResponse,
    summary="Update listing",
    description="Partial update; new images are appended after the existing ones.",
    responses=get_error_responses(401, 403, 404, 422)
)
async def update_property(
    property_id: UUID = Path(..., description="Listing ID"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    surface_area: Optional[str] = Form(None),
    bedrooms: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    neighborhood: Optional[str] = Form(None),
    status_value: Optional[str] = Form(None, alias="status"),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingMutationResponse:
    listing = await listing_service.find(property_id)

    attributes = form_attributes(
        title=title,
        description=description,
        price=price,
        surface_area=surface_area,
        bedrooms=bedrooms,
        city=city,
        neighborhood=neighborhood,
        # An empty select means "unchanged"
        status=status_value or None
    )
    listing = await listing_service.update_listing(
        current_user, listing, attributes, await read_images(images)
    )

    return ListingMutationResponse(
        message="Property updated successfully.",
        listing=ListingResponse.model_validate(listing)
    )


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete listing",
    description="Removes the listing, its image records and image files.",
    responses=get_error_responses(401, 403, 404)
)
async def delete_property(
    property_id: UUID = Path(..., description="Listing ID"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> MessageResponse:
    listing = await listing_service.find(property_id)
    await listing_service.delete_listing(current_user, listing)
    return MessageResponse(message="Property deleted successfully.")
