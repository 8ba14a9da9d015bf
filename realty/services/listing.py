"""
Listing service for the listing write path.
Handles creation with images, partial updates, deletion and the cascading purge
used by user deletion. Every operation authorizes the actor before validating
input and validates everything before writing.
"""

from typing import Optional, List, Dict, Any, Type
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from realty.models.listing import Listing
from realty.models.user import User
from realty.repositories.listing import ListingRepository
from realty.repositories.image import ImageRepository
from realty.schemas.listing import ListingCreate, ListingUpdate, collect_field_errors
from realty.services import policy
from realty.services.moderation import initial_status, check_transition
from realty.services.image import ImageStorage, ImageUpload
from realty.utils.exceptions import (
    APIException,
    ValidationError,
    InsufficientPermissionsError,
    ListingNotFoundError,
    ListingUnavailableError,
    InternalServerError
)
import uuid
import logging

logger = logging.getLogger(__name__)

STATUS_NOT_ALLOWED_MESSAGE = "Only administrators can change the status of a property."


class ListingService:
    """
    Business rules for creating, changing and removing listings.
    """

    def __init__(self, db_session: AsyncSession, storage: Optional[ImageStorage] = None):
        self.db = db_session
        self.listing_repo = ListingRepository(db_session)
        self.image_repo = ImageRepository(db_session)
        self.storage = storage or ImageStorage()

    async def find(self, listing_id: uuid.UUID) -> Listing:
        """
        Load a listing without any visibility check.

        Raises:
            ListingNotFoundError: If no listing has this id
        """
        listing = await self.listing_repo.get_with_details(listing_id)
        if listing is None:
            raise ListingNotFoundError(str(listing_id))
        return listing

    async def get_listing(self, actor: Optional[User], listing_id: uuid.UUID) -> Listing:
        """
        Load a listing the actor is allowed to see.

        Raises:
            ListingNotFoundError: If no listing has this id
            ListingUnavailableError: If the listing is not visible to the actor
        """
        listing = await self.find(listing_id)

        if not policy.can_view_listing(actor, listing):
            raise ListingUnavailableError()

        return listing

    async def get_for_edit(self, actor: Optional[User], listing_id: uuid.UUID) -> Listing:
        listing = await self.find(listing_id)
        if not policy.can_edit_listing(actor, listing):
            raise InsufficientPermissionsError("edit this property")
        return listing

    async def create_listing(
        self,
        actor: Optional[User],
        attributes: Dict[str, Any],
        images: Optional[List[ImageUpload]] = None
    ) -> Listing:
        """
        Create a listing owned by the actor, with its images.

        Args:
            actor: User creating the listing
            attributes: Raw listing fields (strings from a form are accepted)
            images: Uploaded images in submission order

        Returns:
            Created listing with owner and images loaded

        Raises:
            InsufficientPermissionsError: If the actor may not create listings
            ValidationError: With every field and image violation at once
        """
        if not policy.can_create_listing(actor):
            raise InsufficientPermissionsError("create properties")

        images = images or []
        data = self._validate(ListingCreate, attributes, images)

        try:
            data["user_id"] = actor.id
            data["status"] = initial_status(actor)

            listing = await self.listing_repo.create(data)
            await self._attach_images(listing, images, start=0)

            logger.info(
                f"Listing created by {actor.email}: {listing.title} "
                f"(ID: {listing.id}, status: {listing.status.value}, images: {len(images)})"
            )
            return await self.listing_repo.get_with_details(listing.id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create listing for user {actor.id}: {e}", exc_info=True)
            raise InternalServerError("Failed to create property")

    async def update_listing(
        self,
        actor: Optional[User],
        listing: Listing,
        attributes: Dict[str, Any],
        images: Optional[List[ImageUpload]] = None
    ) -> Listing:
        """
        Apply a partial update and append new images after the existing ones.

        Only provided (non-None) fields are validated and changed. A status value is
        honoured for admins and rejected as a validation error for everyone else.

        Raises:
            InsufficientPermissionsError: If the actor may not edit the listing
            ValidationError: With every field and image violation at once
        """
        if not policy.can_edit_listing(actor, listing):
            raise InsufficientPermissionsError("edit this property")

        images = images or []
        provided = {key: value for key, value in attributes.items() if value is not None}

        extra_errors = []
        if "status" in provided and not policy.is_admin(actor):
            extra_errors.append({"field": "status", "message": STATUS_NOT_ALLOWED_MESSAGE})
            provided.pop("status")

        data = self._validate(ListingUpdate, provided, images, extra_errors)

        try:
            if "status" in data:
                data["status"] = check_transition(actor, data["status"])

            if data:
                await self.listing_repo.update(listing, data)

            if images:
                start = await self.image_repo.count_for_listing(listing.id)
                await self._attach_images(listing, images, start=start)

            logger.info(
                f"Listing {listing.id} updated by {actor.email}: "
                f"fields={sorted(data)}, new images={len(images)}"
            )
            return await self.listing_repo.get_with_details(listing.id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update listing {listing.id}: {e}", exc_info=True)
            raise InternalServerError("Failed to update property")

    async def delete_listing(self, actor: Optional[User], listing: Listing) -> None:
        """
        Delete a listing with its images and image files.

        Raises:
            InsufficientPermissionsError: If the actor may not delete the listing
        """
        if not policy.can_delete_listing(actor, listing):
            raise InsufficientPermissionsError("delete this property")

        await self.purge_listing(listing)
        logger.info(f"Listing {listing.id} deleted by {actor.email}")

    async def purge_listing(self, listing: Listing) -> None:
        """
        Remove image files, then image records, then the listing record.

        No authorization is done here; callers have already decided. A file that
        cannot be removed is logged by the storage and skipped.
        """
        listing_id = listing.id
        images = await self.image_repo.get_by_listing_id(listing_id)

        failed = 0
        for image in images:
            if not await self.storage.delete(image.path):
                failed += 1

        await self.image_repo.delete_for_listing(listing_id)
        await self.listing_repo.delete(listing_id)

        if failed:
            logger.warning(f"Listing {listing_id} purged with {failed} image file(s) left on disk")
        else:
            logger.debug(f"Listing {listing_id} purged with {len(images)} image(s)")

    def _validate(
        self,
        schema: Type[BaseModel],
        attributes: Dict[str, Any],
        images: List[ImageUpload],
        extra_errors: Optional[List[Dict[str, str]]] = None
    ) -> Dict[str, Any]:
        """
        Validate attributes against a schema plus the uploaded images.

        Returns:
            Validated field values that were provided

        Raises:
            ValidationError: Listing every violation found
        """
        errors = list(extra_errors or [])
        data: Dict[str, Any] = {}

        try:
            data = schema(**attributes).model_dump(exclude_unset=True)
        except PydanticValidationError as e:
            errors.extend(collect_field_errors(e))

        errors.extend(self.storage.validate(images))

        if errors:
            raise ValidationError(field_errors=errors)

        return data

    async def _attach_images(self, listing: Listing, images: List[ImageUpload], start: int) -> None:
        """Store files and create image records with sort orders start, start+1, ..."""
        if not images:
            return

        records = []
        for offset, upload in enumerate(images):
            path = await self.storage.store(upload)
            position = start + offset
            records.append({
                "listing_id": listing.id,
                "path": path,
                "alt_text": f"{listing.title} - Image {position + 1}",
                "sort_order": position,
            })

        await self.image_repo.add_many(records)
