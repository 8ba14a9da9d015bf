"""
User repository for authentication and user directory operations.
Provides role-predicate queries and the admin user listing.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, or_
from realty.repositories.base import BaseRepository
from realty.models.user import User, UserRole
from realty.models.listing import Listing
from typing import Optional, List, Dict, Any, Tuple
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication support.
    Role checks themselves live in the authorization policy, not here.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, full_name
                      Optional: role (defaults to CLIENT)

        Returns:
            Created user instance

        Raises:
            ValueError: If the email is invalid, already taken, or the password is too short
        """
        user_data = dict(user_data)
        email = User.validate_email_format(user_data["email"])

        existing_user = await self.get_by_email(email)
        if existing_user:
            raise ValueError(f"User with email {email} already exists")

        password = user_data.pop("password")

        create_data = {
            **user_data,
            "email": email,
            "hashed_password": User.hash_password(password),
            "role": user_data.get("role", UserRole.CLIENT),
            "is_active": user_data.get("is_active", True)
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)."""
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User).where(User.email == normalized_email))
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        return user

    async def list_by_role(self, role: UserRole) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.role == role).order_by(desc(User.created_at))
        )
        return list(result.scalars().all())

    async def count_by_role(self, role: UserRole) -> int:
        return await self.count({"role": role})

    async def search_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Tuple[User, int]], int]:
        """
        Admin user listing with the number of listings each user owns.

        Args:
            role: Optional exact role filter
            search: Optional case-insensitive substring of name or email
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of ((user, listing count) pairs, total count)
        """
        conditions = []
        if role is not None:
            conditions.append(User.role == role)
        if search:
            term = f"%{search}%"
            conditions.append(or_(User.full_name.ilike(term), User.email.ilike(term)))

        count_query = select(func.count(User.id)).where(*conditions)
        total_count = (await self.db.execute(count_query)).scalar() or 0

        listing_count = (
            select(func.count(Listing.id))
            .where(Listing.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        query = (
            select(User, listing_count.label("listings_count"))
            .where(*conditions)
            .order_by(desc(User.created_at), desc(User.id))
            .offset(skip)
            .limit(limit)
        )

        result = await self.db.execute(query)
        rows = [(user, count or 0) for user, count in result.all()]

        logger.debug(f"User search returned {len(rows)} of {total_count} users")
        return rows, total_count
