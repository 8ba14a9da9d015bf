"""
Listing model for property sale and rental listings.
Handles property data, moderation status and ownership.
"""

from sqlalchemy import String, Text, Integer, Numeric, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from realty.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from realty.models.user import User
    from realty.models.image import ListingImage


class ListingStatus(str, enum.Enum):
    """Moderation status of a listing. Only published listings are public."""
    PENDING = "pending"
    PUBLISHED = "published"
    ARCHIVED = "archived"

    @classmethod
    def values(cls) -> List[str]:
        return [status.value for status in cls]


class Listing(Base):
    """
    Property listing owned by an agent or administrator.
    The owner reference is set once at creation and never updated.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Price in currency"
    )

    surface_area: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Surface area in square meters"
    )

    bedrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Number of bedrooms"
    )

    city: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True
    )

    neighborhood: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    status: Mapped[ListingStatus] = mapped_column(
        SQLEnum(ListingStatus, values_callable=lambda statuses: [s.value for s in statuses], native_enum=False, length=20),
        nullable=False,
        default=ListingStatus.PENDING,
        index=True,
        comment="Moderation status"
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the user who owns this listing"
    )

    owner: Mapped["User"] = relationship(
        "User",
        lazy="selectin"
    )

    # Image rows and files are removed explicitly by ListingService.purge_listing
    images: Mapped[List["ListingImage"]] = relationship(
        "ListingImage",
        back_populates="listing",
        passive_deletes=True,
        lazy="selectin",
        order_by="[ListingImage.sort_order, ListingImage.created_at]"
    )

    def __repr__(self) -> str:
        """String representation of the listing."""
        return f"<Listing(id={self.id}, title={self.title[:30]}, status={self.status})>"

    @property
    def is_published(self) -> bool:
        return self.status == ListingStatus.PUBLISHED


# Newest-first listing pages filtered by status
status_created_index = Index(
    "idx_properties_status_created",
    Listing.status,
    Listing.created_at.desc()
)
