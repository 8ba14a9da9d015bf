"""
User directory service.
Lookups by id and role, admin role management and cascading account deletion.
At least one admin must exist at all times.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from realty.config import settings
from realty.models.user import User, UserRole
from realty.models.listing import ListingStatus
from realty.repositories.user import UserRepository
from realty.repositories.listing import ListingRepository
from realty.services import policy
from realty.services.listing import ListingService
from realty.services.image import ImageStorage
from realty.utils.exceptions import (
    ValidationError,
    NotFoundError,
    InsufficientPermissionsError,
    LastAdminError
)
import uuid
import logging

logger = logging.getLogger(__name__)

INVALID_ROLE_MESSAGE = "Role must be admin, agent, or client."


def parse_role(value: Any) -> UserRole:
    """
    Raises:
        ValidationError: If the value is not a known role
    """
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError.for_field("role", INVALID_ROLE_MESSAGE)


class UserService:
    """Directory operations. Mutations are reserved to admins."""

    def __init__(self, db_session: AsyncSession, storage: Optional[ImageStorage] = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.listing_repo = ListingRepository(db_session)
        self.listing_service = ListingService(db_session, storage=storage)

    async def find_by_id(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    async def list_by_role(self, role: UserRole) -> List[User]:
        return await self.user_repo.list_by_role(role)

    async def count_by_role(self, role: UserRole) -> int:
        return await self.user_repo.count_by_role(role)

    async def update_role(self, actor: Optional[User], target: User, new_role: Any) -> User:
        """
        Change a user's role.

        Raises:
            InsufficientPermissionsError: If the actor is not an admin
            ValidationError: If the role is unknown
            LastAdminError: If the change would leave no admin
        """
        if not policy.can_moderate(actor):
            raise InsufficientPermissionsError("manage users")

        role = parse_role(new_role)

        if target.role == UserRole.ADMIN and role != UserRole.ADMIN:
            if await self.count_by_role(UserRole.ADMIN) <= 1:
                raise LastAdminError("Cannot remove the admin role from the last admin user.")

        previous = target.role
        updated = await self.user_repo.update(target, {"role": role})

        logger.info(f"User {target.email} role changed from {previous.value} to {role.value} by {actor.email}")
        return updated

    async def delete_user(self, actor: Optional[User], target: User) -> int:
        """
        Delete a user and every listing they own, files included.

        Listings are purged one by one before the user record goes.

        Returns:
            Number of listings removed

        Raises:
            InsufficientPermissionsError: If the actor is not an admin
            LastAdminError: If the target is the only admin
        """
        if not policy.can_moderate(actor):
            raise InsufficientPermissionsError("manage users")

        if target.role == UserRole.ADMIN and await self.count_by_role(UserRole.ADMIN) <= 1:
            raise LastAdminError()

        target_id = target.id
        target_email = target.email

        listings = await self.listing_repo.get_by_owner(target_id)
        for listing in listings:
            await self.listing_service.purge_listing(listing)

        await self.user_repo.delete(target_id)

        logger.info(f"User {target_email} deleted by {actor.email} with {len(listings)} listing(s)")
        return len(listings)

    async def search_users(
        self,
        role: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> Tuple[List[Tuple[User, int]], int]:
        """
        Admin user directory page, newest first, with listing counts.

        Blank role and search values are ignored.
        """
        page = max(1, page)
        page_size = page_size or settings.admin_page_size
        role_filter = parse_role(role) if role and role.strip() else None
        search_term = search.strip() if search and search.strip() else None

        return await self.user_repo.search_users(
            role=role_filter,
            search=search_term,
            skip=(page - 1) * page_size,
            limit=page_size
        )

    async def dashboard_stats(self) -> Dict[str, int]:
        """Listing counts per status and user counts per role."""
        by_status = await self.listing_repo.count_by_status()

        return {
            "total_properties": sum(by_status.values()),
            "pending_properties": by_status[ListingStatus.PENDING],
            "published_properties": by_status[ListingStatus.PUBLISHED],
            "archived_properties": by_status[ListingStatus.ARCHIVED],
            "total_users": await self.user_repo.count(),
            "agents": await self.count_by_role(UserRole.AGENT),
            "clients": await self.count_by_role(UserRole.CLIENT),
            "admins": await self.count_by_role(UserRole.ADMIN),
        }

    async def recent_listings(self, limit: Optional[int] = None):
        return await self.listing_repo.get_recent(limit or settings.dashboard_recent_count)
