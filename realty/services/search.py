"""
Search and filter engine for listings.

Turns raw query-string criteria into ListingSearchFilters and runs bounded,
newest-first, 1-indexed page queries. Public searches are always restricted to
published listings; the admin moderation view filters only by status and city.
"""

from typing import Optional, List, Mapping, Dict, Any, Callable
from decimal import Decimal, InvalidOperation
from sqlalchemy.ext.asyncio import AsyncSession
from realty.config import settings
from realty.models.listing import Listing, ListingStatus
from realty.repositories.listing import ListingRepository, ListingSearchFilters
from realty.services.moderation import parse_status
from realty.utils.exceptions import ValidationError
import math
import logging

logger = logging.getLogger(__name__)

# Query keys that count as a search on the home page
FILTER_KEYS = ("city", "min_price", "max_price", "min_surface", "max_surface", "bedrooms")


class SearchPage:
    """One page of search results together with the total match count."""

    def __init__(self, items: List[Listing], total: int, page: int, page_size: int):
        self.items = items
        self.total = total
        self.page = page
        self.page_size = page_size

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def __repr__(self) -> str:
        return f"<SearchPage(page={self.page}, items={len(self.items)}, total={self.total})>"


def has_any_filter(params: Mapping[str, Any]) -> bool:
    """Whether at least one filter key is present in the query string, even if empty."""
    return any(key in params for key in FILTER_KEYS)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_decimal(value: str) -> Decimal:
    number = Decimal(str(value).strip())
    if not number.is_finite():
        raise InvalidOperation(value)
    return number


def _to_int(value: str) -> int:
    return int(str(value).strip())


def parse_criteria(params: Mapping[str, Any]) -> ListingSearchFilters:
    """
    Build public search filters from raw query parameters.

    Empty values count as absent. Every non-numeric numeric parameter is reported in
    a single ValidationError.
    """
    parsers: Dict[str, Callable[[str], Any]] = {
        "min_price": _to_decimal,
        "max_price": _to_decimal,
        "min_surface": _to_int,
        "max_surface": _to_int,
        "bedrooms": _to_int,
    }
    values: Dict[str, Any] = {}
    errors = []

    for key, parse in parsers.items():
        raw = params.get(key)
        if _blank(raw):
            continue
        try:
            values[key] = parse(raw)
        except (InvalidOperation, ValueError):
            kind = "a number" if parse is _to_decimal else "a whole number"
            errors.append({"field": key, "message": f"The {key} filter must be {kind}."})

    if errors:
        raise ValidationError("Invalid search filters", field_errors=errors)

    city = params.get("city")
    return ListingSearchFilters(city=None if _blank(city) else str(city).strip(), **values)


def parse_admin_criteria(params: Mapping[str, Any]) -> ListingSearchFilters:
    """Admin moderation filters: an optional exact status and a city substring."""
    status = params.get("status")
    city = params.get("city")
    return ListingSearchFilters(
        status=None if _blank(status) else parse_status(status),
        city=None if _blank(city) else str(city).strip()
    )


def active_filters(params: Mapping[str, Any], keys=FILTER_KEYS) -> Dict[str, Any]:
    """Echo of the non-empty filters, returned to clients alongside results."""
    return {key: params[key] for key in keys if key in params and not _blank(params[key])}


class SearchService:
    """Runs paginated listing searches."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)

    async def search(
        self,
        criteria: ListingSearchFilters,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> SearchPage:
        """
        Run a search over every listing matching the criteria.

        A page past the end returns no items but still reports the total.
        """
        page = max(1, page)
        page_size = page_size or settings.public_page_size

        items, total = await self.listing_repo.search(
            criteria,
            skip=(page - 1) * page_size,
            limit=page_size
        )
        return SearchPage(items, total, page, page_size)

    async def search_published(
        self,
        criteria: ListingSearchFilters,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> SearchPage:
        """Public browsing: the criteria are always narrowed to published listings."""
        published = ListingSearchFilters(
            city=criteria.city,
            min_price=criteria.min_price,
            max_price=criteria.max_price,
            min_surface=criteria.min_surface,
            max_surface=criteria.max_surface,
            bedrooms=criteria.bedrooms,
            status=ListingStatus.PUBLISHED,
            user_id=criteria.user_id
        )
        return await self.search(published, page, page_size or settings.public_page_size)

    async def search_for_admin(
        self,
        criteria: ListingSearchFilters,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> SearchPage:
        scoped = ListingSearchFilters(status=criteria.status, city=criteria.city)
        return await self.search(scoped, page, page_size or settings.admin_page_size)

    async def recent_published(self, limit: Optional[int] = None) -> List[Listing]:
        return await self.listing_repo.get_recent(
            limit or settings.home_recent_count,
            status=ListingStatus.PUBLISHED
        )
