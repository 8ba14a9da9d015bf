"""
Authentication service for registration, login and token management.
"""

from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from realty.repositories.user import UserRepository
from realty.models.user import User, UserRole
from realty.schemas.user import UserCreate
from realty.services import policy
from realty.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token
)
from realty.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    ConflictError,
    ValidationError,
    InsufficientPermissionsError
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing accounts and bearer tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate, current_user: Optional[User] = None) -> User:
        """
        Create an account. Anyone may register as client or agent; creating an
        admin account requires an admin actor.

        Raises:
            InsufficientPermissionsError: If a non-admin requests the admin role
            ConflictError: If the email is already registered
            ValidationError: If the email or password is rejected
        """
        if user_data.role == UserRole.ADMIN and not policy.is_admin(current_user):
            raise InsufficientPermissionsError("create admin users")

        if await self.user_repo.get_by_email(user_data.email):
            raise ConflictError(f"Email {user_data.email} is already registered")

        try:
            user = await self.user_repo.create_user(user_data.model_dump())
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Registered {user.role.value} account: {user.email}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            raise InvalidCredentialsError()

        if not user.is_active:
            raise InactiveUserError()

        logger.info(f"User authenticated successfully: {user.email}")
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """Create (access_token, refresh_token) for a user."""
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid or its user is gone
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, token_type="refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """Resolve the user behind an access token."""
        return await self._user_from_token(token, token_type="access")

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise InvalidTokenError("Token user no longer exists")

        if not user.is_active:
            raise InactiveUserError()

        return user
