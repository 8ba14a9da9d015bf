"""
ListingImage model for images attached to a listing.
Stores the storage path, alt text and gallery ordering.
"""

from sqlalchemy import String, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from realty.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from realty.models.listing import Listing


class ListingImage(Base):
    """
    Image exclusively owned by one listing.
    sort_order is appended after the listing's existing images at upload time.
    """

    __tablename__ = "property_images"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        "property_id",
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the listing this image belongs to"
    )

    path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Storage path relative to the upload directory"
    )

    alt_text: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Alternative text for accessibility"
    )

    sort_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display order"
    )

    listing: Mapped["Listing"] = relationship(
        "Listing",
        back_populates="images"
    )

    def __repr__(self) -> str:
        """String representation of the listing image."""
        return f"<ListingImage(id={self.id}, listing_id={self.listing_id}, path={self.path})>"


# Gallery lookups for a listing
listing_images_order_index = Index(
    "idx_property_images_property_sort",
    ListingImage.listing_id,
    ListingImage.sort_order
)
