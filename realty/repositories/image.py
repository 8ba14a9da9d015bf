"""
Repository for ListingImage records.
"""

import uuid
from typing import List, Dict, Any
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from realty.models.image import ListingImage
from realty.repositories.base import BaseRepository
import logging

logger = logging.getLogger(__name__)


class ImageRepository(BaseRepository[ListingImage]):
    """Repository for ListingImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(ListingImage, db)

    async def get_by_listing_id(self, listing_id: uuid.UUID) -> List[ListingImage]:
        """
        Get all images of a listing in display order.
        Ties on sort_order fall back to insertion time.
        """
        query = (
            select(ListingImage)
            .where(ListingImage.listing_id == listing_id)
            .order_by(ListingImage.sort_order.asc(), ListingImage.created_at.asc())
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_listing(self, listing_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(ListingImage.id)).where(ListingImage.listing_id == listing_id)
        )
        return result.scalar() or 0

    async def add_many(self, images_in: List[Dict[str, Any]]) -> List[ListingImage]:
        """
        Create several image records in a single commit.

        Args:
            images_in: List of dictionaries with field values

        Returns:
            List of created image records
        """
        try:
            images = [ListingImage(**data) for data in images_in]
            self.db.add_all(images)
            await self.db.commit()
            logger.debug(f"Created {len(images)} image records")
            return images
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create image records: {e}")
            raise

    async def delete_for_listing(self, listing_id: uuid.UUID) -> int:
        """Delete every image record of a listing. Returns the number removed."""
        try:
            result = await self.db.execute(
                delete(ListingImage).where(ListingImage.listing_id == listing_id)
            )
            await self.db.commit()
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete images of listing {listing_id}: {e}")
            raise
