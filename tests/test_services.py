"""
Tests for service classes.
Covers the listing write path with images, user administration, authentication
and image storage.
"""

import io
import os
import pytest
import uuid
from decimal import Decimal
from starlette.datastructures import UploadFile

from realty.models.user import UserRole
from realty.models.listing import ListingStatus
from realty.repositories.listing import ListingSearchFilters
from realty.schemas.user import UserCreate
from realty.config import settings
from realty.services.image import IMAGE_MESSAGES, ImageStorage, ImageUpload
from realty.services.listing import STATUS_NOT_ALLOWED_MESSAGE
from realty.services.user import INVALID_ROLE_MESSAGE
from realty.utils.auth import create_refresh_token
from realty.utils.exceptions import (
    ValidationError,
    InsufficientPermissionsError,
    ListingNotFoundError,
    ListingUnavailableError,
    NotFoundError,
    LastAdminError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    InactiveUserError,
    InternalServerError
)
from tests.conftest import (
    UserFactory,
    ListingFactory,
    ImageFactory,
    TEST_PASSWORD,
    make_upload
)


VALID_ATTRIBUTES = {
    "title": "Garden house",
    "description": "Quiet street, large garden",
    "price": "420000",
    "surface_area": "160",
    "bedrooms": "4",
    "city": "Rabat",
    "neighborhood": "Souissi",
}


class TestListingServiceCreate:

    @pytest.mark.asyncio
    async def test_agent_listing_starts_pending(self, listing_service, test_agent):
        listing = await listing_service.create_listing(test_agent, VALID_ATTRIBUTES)

        assert listing.status == ListingStatus.PENDING
        assert listing.user_id == test_agent.id
        assert listing.owner.id == test_agent.id
        assert listing.price == Decimal("420000")
        assert listing.bedrooms == 4

    @pytest.mark.asyncio
    async def test_admin_listing_starts_published(self, listing_service, test_admin):
        listing = await listing_service.create_listing(test_admin, VALID_ATTRIBUTES)
        assert listing.status == ListingStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_client_forbidden_before_validation(self, listing_service, test_client_user, listing_repository):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.create_listing(test_client_user, {})

        _, total = await listing_repository.search(ListingSearchFilters())
        assert total == 0

    @pytest.mark.asyncio
    async def test_anonymous_forbidden(self, listing_service):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.create_listing(None, VALID_ATTRIBUTES)

    @pytest.mark.asyncio
    async def test_every_missing_field_reported(self, listing_service, test_agent):
        with pytest.raises(ValidationError) as exc_info:
            await listing_service.create_listing(test_agent, {})

        assert set(exc_info.value.fields) == {
            "title", "description", "price", "surface_area", "bedrooms", "city", "neighborhood"
        }
        messages = {error["field"]: error["message"] for error in exc_info.value.field_errors}
        assert messages["title"] == "Property title is required."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value,message", [
        ("price", "abc", "Price must be a valid number."),
        ("price", "-1", "Price cannot be negative."),
        ("surface_area", "0", "Surface area must be at least 1 square meter."),
        ("bedrooms", "21", "Maximum 20 bedrooms allowed."),
        ("title", "x" * 256, "Property title may not be greater than 255 characters."),
    ])
    async def test_field_rules(self, listing_service, test_agent, field, value, message):
        with pytest.raises(ValidationError) as exc_info:
            await listing_service.create_listing(test_agent, {**VALID_ATTRIBUTES, field: value})

        assert exc_info.value.field_errors == [{"field": field, "message": message}]

    @pytest.mark.asyncio
    async def test_boundary_values_accepted(self, listing_service, test_agent):
        listing = await listing_service.create_listing(
            test_agent,
            {**VALID_ATTRIBUTES, "price": "0", "surface_area": "1", "bedrooms": "20"}
        )

        assert listing.price == Decimal("0")
        assert listing.surface_area == 1
        assert listing.bedrooms == 20

    @pytest.mark.asyncio
    async def test_images_stored_in_order(self, listing_service, storage, test_agent):
        uploads = [make_upload("a.jpg"), make_upload("b.png"), make_upload("c.webp")]

        listing = await listing_service.create_listing(test_agent, VALID_ATTRIBUTES, uploads)

        assert [image.sort_order for image in listing.images] == [0, 1, 2]
        assert [image.path.rsplit(".", 1)[-1] for image in listing.images] == ["jpg", "png", "webp"]
        assert listing.images[0].alt_text == "Garden house - Image 1"
        assert all(image.path.startswith("properties/") for image in listing.images)
        assert all(storage.exists(image.path) for image in listing.images)

    @pytest.mark.asyncio
    async def test_field_and_image_errors_reported_together(self, listing_service, storage, test_agent, upload_dir):
        uploads = [make_upload("ok.jpg"), make_upload("notes.pdf", b"%PDF-1.4")]

        with pytest.raises(ValidationError) as exc_info:
            await listing_service.create_listing(test_agent, {**VALID_ATTRIBUTES, "price": "-5"}, uploads)

        assert set(exc_info.value.fields) == {"price", "images.1"}
        # Nothing was written
        assert not os.path.exists(os.path.join(upload_dir, "properties"))

    @pytest.mark.asyncio
    async def test_storage_failure_is_generic_server_error(self, listing_service, test_agent, monkeypatch):
        async def failing_store(self, upload):
            raise OSError("No space left on device: '/srv/secret/storage/properties/x.jpg'")

        monkeypatch.setattr(ImageStorage, "store", failing_store)

        with pytest.raises(InternalServerError) as exc_info:
            await listing_service.create_listing(test_agent, VALID_ATTRIBUTES, [make_upload()])

        assert exc_info.value.status_code == 500
        assert "/srv/secret" not in str(exc_info.value.detail)


class TestListingServiceRead:

    @pytest.mark.asyncio
    async def test_unknown_listing(self, listing_service):
        with pytest.raises(ListingNotFoundError):
            await listing_service.find(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_pending_visibility(self, listing_service, pending_listing, test_agent, other_agent, test_admin, test_client_user):
        assert (await listing_service.get_listing(test_agent, pending_listing.id)).id == pending_listing.id
        assert (await listing_service.get_listing(test_admin, pending_listing.id)).id == pending_listing.id

        for viewer in (None, other_agent, test_client_user):
            with pytest.raises(ListingUnavailableError):
                await listing_service.get_listing(viewer, pending_listing.id)

    @pytest.mark.asyncio
    async def test_get_for_edit_requires_ownership(self, listing_service, published_listing, other_agent):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.get_for_edit(other_agent, published_listing.id)


class TestListingServiceUpdate:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, listing_service, published_listing, test_agent):
        updated = await listing_service.update_listing(test_agent, published_listing, {"price": "260000", "city": None})

        assert updated.price == Decimal("260000")
        assert updated.city == "Casablanca"
        assert updated.title == "Published flat"

    @pytest.mark.asyncio
    async def test_new_images_appended(self, listing_service, test_agent):
        listing = await listing_service.create_listing(
            test_agent, VALID_ATTRIBUTES, [make_upload() for _ in range(3)]
        )

        updated = await listing_service.update_listing(
            test_agent, listing, {}, [make_upload() for _ in range(2)]
        )

        assert [image.sort_order for image in updated.images] == [0, 1, 2, 3, 4]
        assert updated.images[3].alt_text == "Garden house - Image 4"

    @pytest.mark.asyncio
    async def test_agent_cannot_edit_others(self, listing_service, published_listing, other_agent):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.update_listing(other_agent, published_listing, {"title": "Mine now"})

    @pytest.mark.asyncio
    async def test_client_cannot_edit(self, listing_service, published_listing, test_client_user):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.update_listing(test_client_user, published_listing, {"title": "x"})

    @pytest.mark.asyncio
    async def test_agent_status_change_rejected(self, listing_service, listing_repository, pending_listing, test_agent):
        with pytest.raises(ValidationError) as exc_info:
            await listing_service.update_listing(
                test_agent, pending_listing, {"status": "published", "bedrooms": "99"}
            )

        messages = {error["field"]: error["message"] for error in exc_info.value.field_errors}
        assert messages["status"] == STATUS_NOT_ALLOWED_MESSAGE
        assert "bedrooms" in messages

        reloaded = await listing_repository.get_with_details(pending_listing.id)
        assert reloaded.status == ListingStatus.PENDING

    @pytest.mark.asyncio
    async def test_admin_changes_status_and_fields(self, listing_service, pending_listing, test_admin):
        updated = await listing_service.update_listing(
            test_admin, pending_listing, {"status": "archived", "title": "Archived flat"}
        )

        assert updated.status == ListingStatus.ARCHIVED
        assert updated.title == "Archived flat"
        assert updated.user_id == pending_listing.user_id

    @pytest.mark.asyncio
    async def test_admin_status_is_case_insensitive(self, listing_service, pending_listing, test_admin):
        updated = await listing_service.update_listing(test_admin, pending_listing, {"status": " PUBLISHED "})

        assert updated.status == ListingStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_admin_unknown_status(self, listing_service, pending_listing, test_admin):
        with pytest.raises(ValidationError) as exc_info:
            await listing_service.update_listing(test_admin, pending_listing, {"status": "sold"})

        assert exc_info.value.field_errors == [
            {"field": "status", "message": "Status must be pending, published, or archived."}
        ]


class TestListingServiceDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_rows_and_files(
        self, listing_service, listing_repository, image_repository, storage, test_agent
    ):
        listing = await listing_service.create_listing(
            test_agent, VALID_ATTRIBUTES, [make_upload(), make_upload()]
        )
        paths = [image.path for image in listing.images]

        await listing_service.delete_listing(test_agent, listing)

        assert await listing_repository.get_with_details(listing.id) is None
        assert await image_repository.count_for_listing(listing.id) == 0
        assert not any(storage.exists(path) for path in paths)

    @pytest.mark.asyncio
    async def test_missing_file_does_not_abort_delete(
        self, listing_service, listing_repository, image_repository, storage, published_listing, test_agent
    ):
        images = await ImageFactory.attach_images(image_repository, storage, published_listing, count=2)
        os.remove(storage.upload_dir / images[0].path)

        await listing_service.delete_listing(test_agent, published_listing)

        assert await listing_repository.get_with_details(published_listing.id) is None
        assert await image_repository.count_for_listing(published_listing.id) == 0
        assert not storage.exists(images[1].path)

    @pytest.mark.asyncio
    async def test_other_agent_cannot_delete(self, listing_service, listing_repository, published_listing, other_agent):
        with pytest.raises(InsufficientPermissionsError):
            await listing_service.delete_listing(other_agent, published_listing)

        assert await listing_repository.get_with_details(published_listing.id) is not None


class TestUserService:

    @pytest.mark.asyncio
    async def test_find_by_id(self, user_service, test_agent):
        assert (await user_service.find_by_id(test_agent.id)).id == test_agent.id

        with pytest.raises(NotFoundError):
            await user_service.find_by_id(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_update_role(self, user_service, test_admin, test_client_user):
        updated = await user_service.update_role(test_admin, test_client_user, "agent")
        assert updated.role == UserRole.AGENT

    @pytest.mark.asyncio
    async def test_update_role_unknown(self, user_service, test_admin, test_client_user):
        with pytest.raises(ValidationError) as exc_info:
            await user_service.update_role(test_admin, test_client_user, "superuser")

        assert exc_info.value.field_errors == [{"field": "role", "message": INVALID_ROLE_MESSAGE}]

    @pytest.mark.asyncio
    async def test_update_role_requires_admin(self, user_service, test_agent, test_client_user):
        with pytest.raises(InsufficientPermissionsError):
            await user_service.update_role(test_agent, test_client_user, "agent")

    @pytest.mark.asyncio
    async def test_last_admin_cannot_be_demoted(self, user_service, test_admin):
        with pytest.raises(LastAdminError):
            await user_service.update_role(test_admin, test_admin, "client")

    @pytest.mark.asyncio
    async def test_admin_demoted_when_another_exists(self, user_service, user_repository, test_admin):
        second = await UserFactory.create_user(user_repository, role=UserRole.ADMIN)

        updated = await user_service.update_role(test_admin, second, "client")
        assert updated.role == UserRole.CLIENT

    @pytest.mark.asyncio
    async def test_delete_user_cascades(
        self, user_service, user_repository, listing_service, image_repository, listing_repository,
        storage, test_admin, test_agent
    ):
        first = await listing_service.create_listing(test_agent, VALID_ATTRIBUTES, [make_upload(), make_upload()])
        second = await listing_service.create_listing(test_agent, VALID_ATTRIBUTES, [make_upload()])
        paths = [image.path for image in first.images + second.images]

        removed = await user_service.delete_user(test_admin, test_agent)

        assert removed == 2
        assert await user_repository.get_by_id(test_agent.id) is None
        assert await listing_repository.get_by_owner(test_agent.id) == []
        assert await image_repository.count_for_listing(first.id) == 0
        assert not any(storage.exists(path) for path in paths)

    @pytest.mark.asyncio
    async def test_sole_admin_cannot_be_deleted(self, user_service, user_repository, test_admin):
        with pytest.raises(LastAdminError):
            await user_service.delete_user(test_admin, test_admin)

        assert await user_repository.get_by_id(test_admin.id) is not None

    @pytest.mark.asyncio
    async def test_second_admin_can_be_deleted(self, user_service, user_repository, test_admin):
        second = await UserFactory.create_user(user_repository, role=UserRole.ADMIN)

        await user_service.delete_user(test_admin, second)
        assert await user_repository.get_by_id(second.id) is None

    @pytest.mark.asyncio
    async def test_delete_requires_admin(self, user_service, test_agent, other_agent):
        with pytest.raises(InsufficientPermissionsError):
            await user_service.delete_user(test_agent, other_agent)

    @pytest.mark.asyncio
    async def test_dashboard_stats(
        self, user_service, listing_repository, test_admin, test_agent, test_client_user
    ):
        await ListingFactory.create_listing(listing_repository, test_agent, status=ListingStatus.PENDING)
        await ListingFactory.create_listing(listing_repository, test_agent)

        stats = await user_service.dashboard_stats()

        assert stats == {
            "total_properties": 2,
            "pending_properties": 1,
            "published_properties": 1,
            "archived_properties": 0,
            "total_users": 3,
            "agents": 1,
            "clients": 1,
            "admins": 1,
        }

    @pytest.mark.asyncio
    async def test_search_users_blank_filters(self, user_service, test_admin, test_agent):
        rows, total = await user_service.search_users(role=" ", search="")
        assert total == 2

        with pytest.raises(ValidationError):
            await user_service.search_users(role="owner")


class TestAuthService:

    @pytest.mark.asyncio
    async def test_register_client_by_default(self, auth_service):
        user = await auth_service.register(
            UserCreate(email="new@example.com", full_name="New", password=TEST_PASSWORD)
        )
        assert user.role == UserRole.CLIENT

    @pytest.mark.asyncio
    async def test_register_admin_requires_admin(self, auth_service, test_admin):
        data = UserCreate(email="boss@example.com", full_name="Boss", password=TEST_PASSWORD, role=UserRole.ADMIN)

        with pytest.raises(InsufficientPermissionsError):
            await auth_service.register(data)

        user = await auth_service.register(data, current_user=test_admin)
        assert user.role == UserRole.ADMIN

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service, test_agent):
        with pytest.raises(ConflictError):
            await auth_service.register(
                UserCreate(email=test_agent.email, full_name="Copy", password=TEST_PASSWORD)
            )

    @pytest.mark.asyncio
    async def test_login_and_refresh(self, auth_service, test_agent):
        user, access_token, refresh_token = await auth_service.login(test_agent.email, TEST_PASSWORD)

        assert user.id == test_agent.id
        assert (await auth_service.get_current_user(access_token)).id == test_agent.id

        new_access = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(new_access)).id == test_agent.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service, test_agent):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(test_agent.email, "wrong-password")

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(self, auth_service, user_repository):
        user = await UserFactory.create_user(user_repository, is_active=False)

        with pytest.raises(InactiveUserError):
            await auth_service.login(user.email, TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_token_types_not_interchangeable(self, auth_service, test_agent):
        refresh_token = create_refresh_token(user_id=test_agent.id, email=test_agent.email)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(refresh_token)

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user("not-a-token")


class TestImageStorage:

    def test_valid_uploads(self, storage):
        uploads = [make_upload("a.jpg"), make_upload("b.JPEG"), make_upload("c.png"), make_upload("d.webp")]
        assert storage.validate(uploads) == []

    def test_wrong_extension(self, storage):
        errors = storage.validate([make_upload("ok.jpg"), make_upload("doc.gif")])
        assert errors == [{"field": "images.1", "message": IMAGE_MESSAGES["mimes"]}]

    def test_not_an_image(self, storage):
        errors = storage.validate([make_upload("fake.jpg", b"plain text")])
        assert errors == [{"field": "images.0", "message": IMAGE_MESSAGES["image"]}]

    def test_too_large(self, storage):
        errors = storage.validate([make_upload("big.jpg", b"\xff" * (2 * 1024 * 1024 + 1))])
        assert errors == [{"field": "images.0", "message": IMAGE_MESSAGES["max"]}]

    def test_too_many_files(self, storage):
        errors = storage.validate([make_upload() for _ in range(11)])
        assert errors == [{"field": "images", "message": "You may upload at most 10 images at a time."}]

    @pytest.mark.asyncio
    async def test_upload_read_stops_past_size_limit(self, storage):
        file = UploadFile(io.BytesIO(b"\xff" * (3 * 1024 * 1024)), filename="huge.jpg")

        upload = await ImageUpload.from_upload_file(file)

        assert upload.size == settings.max_image_size + 1
        assert storage.validate([upload]) == [{"field": "images.0", "message": IMAGE_MESSAGES["max"]}]

    @pytest.mark.asyncio
    async def test_upload_within_limit_read_whole(self):
        content = make_upload().content
        file = UploadFile(io.BytesIO(content), filename="small.jpg")

        upload = await ImageUpload.from_upload_file(file)

        assert upload.content == content

    @pytest.mark.asyncio
    async def test_store_and_delete(self, storage):
        path = await storage.store(make_upload("photo.PNG"))

        assert path.startswith("properties/") and path.endswith(".png")
        assert storage.exists(path)
        assert await storage.delete(path) is True
        assert not storage.exists(path)
        assert await storage.delete(path) is False


