"""
Landing page endpoint.
"""

from fastapi import APIRouter, Depends, Query, Request
from realty.config import settings
from realty.schemas.listing import HomeResponse, ListingResponse, listing_page
from realty.schemas.error import get_error_responses
from realty.services.search import SearchService, parse_criteria, has_any_filter, active_filters
from realty.utils.dependencies import get_search_service


router = APIRouter(tags=["Home"])


@router.get(
    "/",
    response_model=HomeResponse,
    summary="Home page",
    description=(
        "The most recent published listings. When any search filter appears in the "
        "query string, a paginated result set is included as well."
    ),
    responses=get_error_responses(422)
)
async def home(
    request: Request,
    page: int = Query(1, ge=1, description="Page of the search results"),
    search_service: SearchService = Depends(get_search_service)
) -> HomeResponse:
    params = request.query_params

    recent = await search_service.recent_published(settings.home_recent_count)

    search_results = None
    if has_any_filter(params):
        criteria = parse_criteria(params)
        result = await search_service.search_published(criteria, page, settings.public_page_size)
        search_results = listing_page(result)

    return HomeResponse(
        recent_properties=[ListingResponse.model_validate(listing) for listing in recent],
        search_results=search_results,
        filters=active_filters(params)
    )
