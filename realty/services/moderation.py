"""
Moderation workflow for listing status.

Listings move freely between pending, published and archived, but only by admin
action. New listings start published when an admin creates them and pending
otherwise.
"""

from typing import Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession
from realty.models.listing import Listing, ListingStatus
from realty.models.user import User
from realty.repositories.listing import ListingRepository
from realty.services import policy
from realty.utils.exceptions import ValidationError, InsufficientPermissionsError
import logging

logger = logging.getLogger(__name__)

INVALID_STATUS_MESSAGE = "Status must be pending, published, or archived."


def initial_status(actor: User) -> ListingStatus:
    return ListingStatus.PUBLISHED if policy.is_admin(actor) else ListingStatus.PENDING


def parse_status(value: Union[str, ListingStatus, None]) -> ListingStatus:
    """
    Coerce a raw status value.

    Raises:
        ValidationError: If the value is not one of the known statuses
    """
    if isinstance(value, ListingStatus):
        return value
    try:
        return ListingStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError.for_field("status", INVALID_STATUS_MESSAGE)


def check_transition(actor: Optional[User], new_status: Union[str, ListingStatus, None]) -> ListingStatus:
    """
    Authorize and validate a status change, in that order.

    Raises:
        InsufficientPermissionsError: If the actor is not an admin
        ValidationError: If the target status is unknown
    """
    if not policy.can_moderate(actor):
        raise InsufficientPermissionsError("change the status of this property")
    return parse_status(new_status)


class ModerationService:
    """Persists admin status transitions."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)

    async def set_status(
        self,
        actor: Optional[User],
        listing: Listing,
        new_status: Union[str, ListingStatus, None]
    ) -> Listing:
        status = check_transition(actor, new_status)

        previous = listing.status
        await self.listing_repo.update(listing, {"status": status})

        logger.info(
            f"Listing {listing.id} status changed from {previous.value} to {status.value} "
            f"by {actor.email}"
        )
        return await self.listing_repo.get_with_details(listing.id)
