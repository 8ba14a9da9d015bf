"""
Tests for database models.
Covers password handling, email normalization and listing/image relationships.
"""

import pytest
import uuid
from decimal import Decimal

from realty.models.user import User, UserRole
from realty.models.listing import Listing, ListingStatus
from realty.models.image import ListingImage
from tests.conftest import UserFactory, ListingFactory, TEST_PASSWORD


class TestUserModel:
    """Test User model validation and methods."""

    def test_password_hash_roundtrip(self):
        hashed = User.hash_password("correct horse")
        user = User(email="a@example.com", hashed_password=hashed, full_name="A", role=UserRole.CLIENT)

        assert hashed != "correct horse"
        assert user.verify_password("correct horse")
        assert not user.verify_password("wrong horse")

    def test_short_password_rejected(self):
        with pytest.raises(ValueError, match="at least 8 characters"):
            User.hash_password("short")

    def test_email_validation_valid(self):
        assert User.validate_email_format("Jane.Doe@Example.com") == "jane.doe@example.com"

    @pytest.mark.parametrize("email", ["invalid-email", "@example.com", "test@", ""])
    def test_email_validation_invalid(self, email):
        with pytest.raises(ValueError, match="Invalid email format"):
            User.validate_email_format(email)

    def test_role_properties(self):
        admin = User(role=UserRole.ADMIN)
        agent = User(role=UserRole.AGENT)
        client = User(role=UserRole.CLIENT)

        assert admin.is_admin and not admin.is_agent
        assert agent.is_agent and not agent.is_client
        assert client.is_client and not client.is_admin

    @pytest.mark.asyncio
    async def test_create_user_defaults_to_client(self, user_repository):
        user = await user_repository.create_user({
            "email": "new@example.com",
            "password": TEST_PASSWORD,
            "full_name": "New User"
        })

        assert user.role == UserRole.CLIENT
        assert user.is_active is True
        assert user.created_at is not None


class TestListingModel:
    """Test Listing model and its image relationship."""

    def test_status_values(self):
        assert ListingStatus.values() == ["pending", "published", "archived"]

    def test_is_published(self):
        assert Listing(status=ListingStatus.PUBLISHED).is_published
        assert not Listing(status=ListingStatus.PENDING).is_published
        assert not Listing(status=ListingStatus.ARCHIVED).is_published

    @pytest.mark.asyncio
    async def test_listing_persisted_with_owner(self, listing_repository, test_agent):
        listing = await ListingFactory.create_listing(
            listing_repository,
            test_agent,
            price=Decimal("199999.99")
        )

        loaded = await listing_repository.get_with_details(listing.id)

        assert loaded.owner.id == test_agent.id
        assert loaded.price == Decimal("199999.99")
        assert loaded.images == []

    @pytest.mark.asyncio
    async def test_images_loaded_in_sort_order(self, listing_repository, image_repository, test_agent):
        listing = await ListingFactory.create_listing(listing_repository, test_agent)
        await image_repository.add_many([
            {"listing_id": listing.id, "path": "properties/c.jpg", "sort_order": 2},
            {"listing_id": listing.id, "path": "properties/a.jpg", "sort_order": 0},
            {"listing_id": listing.id, "path": "properties/b.png", "sort_order": 1},
        ])

        loaded = await listing_repository.get_with_details(listing.id)

        assert [image.sort_order for image in loaded.images] == [0, 1, 2]
        assert loaded.images[0].path == "properties/a.jpg"
        assert loaded.images[1].path == "properties/b.png"


class TestListingImageModel:

    def test_repr_includes_path(self):
        image = ListingImage(id=uuid.uuid4(), listing_id=uuid.uuid4(), path="properties/x.jpg")
        assert "properties/x.jpg" in repr(image)
