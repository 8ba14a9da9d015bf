"""
Listing repository for property listings with filtering and pagination.
Provides the query side of the search engine and listing statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from sqlalchemy.orm import selectinload
from realty.repositories.base import BaseRepository
from realty.models.listing import Listing, ListingStatus
from typing import Optional, List, Dict, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)


class ListingSearchFilters:
    """Optional, AND-combined criteria for listing queries."""

    def __init__(
        self,
        city: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_surface: Optional[int] = None,
        max_surface: Optional[int] = None,
        bedrooms: Optional[int] = None,
        status: Optional[ListingStatus] = None,
        user_id: Optional[uuid.UUID] = None
    ):
        self.city = city
        self.min_price = min_price
        self.max_price = max_price
        self.min_surface = min_surface
        self.max_surface = max_surface
        self.bedrooms = bedrooms
        self.status = status
        self.user_id = user_id

    def __repr__(self) -> str:
        active = {k: v for k, v in vars(self).items() if v is not None}
        return f"<ListingSearchFilters({active})>"


class ListingRepository(BaseRepository[Listing]):
    """
    Repository for listing storage and search.
    Results are always ordered newest-created first.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def get_with_details(self, listing_id: uuid.UUID) -> Optional[Listing]:
        """
        Get listing with owner and images, reloading them if already in the session.

        Args:
            listing_id: UUID of the listing

        Returns:
            Listing with loaded relationships or None if not found
        """
        query = (
            select(Listing)
            .options(
                selectinload(Listing.owner),
                selectinload(Listing.images)
            )
            .where(Listing.id == listing_id)
            .execution_options(populate_existing=True)
        )

        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def search(
        self,
        filters: ListingSearchFilters,
        skip: int = 0,
        limit: int = 12
    ) -> Tuple[List[Listing], int]:
        """
        Filter listings with pagination.

        Args:
            filters: ListingSearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return

        Returns:
            Tuple of (listings list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters)

            count_query = select(func.count(Listing.id))
            query = select(Listing)
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))

            total_count = (await self.db.execute(count_query)).scalar() or 0

            query = (
                query.order_by(desc(Listing.created_at), desc(Listing.id))
                .offset(skip)
                .limit(limit)
            )

            result = await self.db.execute(query)
            listings = list(result.scalars().all())

            logger.debug(f"Listing search {filters!r} returned {len(listings)} of {total_count}")
            return listings, total_count
        except Exception as e:
            logger.error(f"Failed to search listings: {e}")
            raise

    def _build_filter_conditions(self, filters: ListingSearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []

        if filters.status is not None:
            conditions.append(Listing.status == filters.status)

        # City filter (case-insensitive partial match)
        if filters.city:
            conditions.append(Listing.city.ilike(f"%{filters.city}%"))

        # Price range filters, both bounds inclusive
        if filters.min_price is not None:
            conditions.append(Listing.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Listing.price <= filters.max_price)

        # Surface filters
        if filters.min_surface is not None:
            conditions.append(Listing.surface_area >= filters.min_surface)
        if filters.max_surface is not None:
            conditions.append(Listing.surface_area <= filters.max_surface)

        # Exact bedroom count
        if filters.bedrooms is not None:
            conditions.append(Listing.bedrooms == filters.bedrooms)

        if filters.user_id is not None:
            conditions.append(Listing.user_id == filters.user_id)

        return conditions

    async def get_recent(self, limit: int, status: Optional[ListingStatus] = None) -> List[Listing]:
        """Most recently created listings, optionally restricted to one status."""
        listings, _ = await self.search(ListingSearchFilters(status=status), skip=0, limit=limit)
        return listings

    async def get_by_owner(self, user_id: uuid.UUID) -> List[Listing]:
        result = await self.db.execute(
            select(Listing).where(Listing.user_id == user_id).order_by(desc(Listing.created_at))
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> Dict[ListingStatus, int]:
        """
        Count listings grouped by status. Every status is present in the result.
        """
        result = await self.db.execute(
            select(Listing.status, func.count(Listing.id)).group_by(Listing.status)
        )
        counts = {status: 0 for status in ListingStatus}
        for status, count in result.all():
            counts[ListingStatus(status)] = count
        return counts
