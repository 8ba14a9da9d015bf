"""
Authorization policy for listings and administration.

Pure predicates over (actor, resource). They never touch the database and never
raise; callers translate a denial into a ForbiddenError before any write. All
role branching in the application goes through this module.
"""

from typing import Optional
from realty.models.user import User, UserRole
from realty.models.listing import Listing


def is_admin(actor: Optional[User]) -> bool:
    return actor is not None and actor.role == UserRole.ADMIN


def is_owner(actor: Optional[User], listing: Listing) -> bool:
    return actor is not None and listing.user_id == actor.id


def can_view_listing(actor: Optional[User], listing: Listing) -> bool:
    """
    Published listings are public. Anything else is visible to admins and to the
    agent who owns it.
    """
    if listing.is_published:
        return True
    if actor is None:
        return False
    if is_admin(actor):
        return True
    return actor.role == UserRole.AGENT and is_owner(actor, listing)


def can_create_listing(actor: Optional[User]) -> bool:
    return actor is not None and actor.role in (UserRole.AGENT, UserRole.ADMIN)


def can_edit_listing(actor: Optional[User], listing: Listing) -> bool:
    """Admins edit anything; agents edit only their own listings; clients nothing."""
    if actor is None:
        return False
    if is_admin(actor):
        return True
    return actor.role == UserRole.AGENT and is_owner(actor, listing)


def can_delete_listing(actor: Optional[User], listing: Listing) -> bool:
    return can_edit_listing(actor, listing)


def can_moderate(actor: Optional[User]) -> bool:
    """Status changes and user administration are admin-only."""
    return is_admin(actor)
