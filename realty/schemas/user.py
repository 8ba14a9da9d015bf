"""
Pydantic schemas for user requests and responses.
Covers registration, the admin user directory and role changes.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from realty.models.user import UserRole
from realty.schemas.pagination import PageMeta
import uuid


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address (must be unique)",
        examples=["agent@example.com"]
    )

    full_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's full name",
        examples=["Jane Doe"]
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()


class UserCreate(UserBase):
    """Registration payload. The role defaults to client."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)"
    )

    role: UserRole = Field(
        UserRole.CLIENT,
        description="Requested role; admin accounts can only be created by an admin"
    )


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: uuid.UUID
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Owner information embedded in listing payloads."""

    id: uuid.UUID
    full_name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class UserWithListingCount(UserResponse):
    """Admin directory row with the number of listings the user owns."""

    properties_count: int = Field(0, description="Number of listings owned by the user")


class UserListResponse(PageMeta):
    """Paginated admin user directory."""

    items: List[UserWithListingCount]


class RoleUpdateRequest(BaseModel):
    """
    Role change payload.
    The value is checked against the role enum by the user service so an unknown
    role is reported like any other validation failure.
    """

    role: str = Field(..., description="New role: client, agent or admin", examples=["agent"])


class UserMutationResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    """Confirmation returned by mutations that have no payload."""

    message: str = Field(..., examples=["Property deleted successfully."])
    detail: Optional[str] = None
