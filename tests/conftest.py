"""
Test configuration and fixtures for the Realty Marketplace API.
Provides an in-memory database, an isolated upload directory, test data factories
and authentication helpers.
"""

import os
import tempfile

# Configure the application before it is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="realty-test-")

import io
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image as PILImage
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import realty.models  # noqa: F401
from realty.config import settings
from realty.database import Base, get_db
from realty.main import app
from realty.models.user import User, UserRole
from realty.models.listing import Listing, ListingStatus
from realty.models.image import ListingImage
from realty.repositories.user import UserRepository
from realty.repositories.listing import ListingRepository
from realty.repositories.image import ImageRepository
from realty.services.auth import AuthService
from realty.services.image import ImageStorage, ImageUpload
from realty.services.listing import ListingService
from realty.services.moderation import ModerationService
from realty.services.search import SearchService
from realty.services.user import UserService
from realty.utils.auth import create_access_token


TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch) -> str:
    """Point image storage at a per-test directory."""
    path = tmp_path / "storage"
    path.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return str(path)


@pytest.fixture
def storage(upload_dir: str) -> ImageStorage:
    return ImageStorage(upload_dir)


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async test client sharing the test session with the application."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


@pytest.fixture
def image_repository(db_session: AsyncSession) -> ImageRepository:
    return ImageRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def listing_service(db_session: AsyncSession, storage: ImageStorage) -> ListingService:
    return ListingService(db_session, storage=storage)


@pytest.fixture
def moderation_service(db_session: AsyncSession) -> ModerationService:
    return ModerationService(db_session)


@pytest.fixture
def search_service(db_session: AsyncSession) -> SearchService:
    return SearchService(db_session)


@pytest.fixture
def user_service(db_session: AsyncSession, storage: ImageStorage) -> UserService:
    return UserService(db_session, storage=storage)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.AGENT,
        is_active: bool = True
    ) -> User:
        return await user_repo.create_user({
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        })


class ListingFactory:
    """Factory for creating test listings directly through the repository."""

    @staticmethod
    def listing_data(**overrides) -> Dict:
        data = {
            "title": "Sunny apartment",
            "description": "Two bedrooms close to the park",
            "price": Decimal("250000.00"),
            "surface_area": 85,
            "bedrooms": 2,
            "city": "Casablanca",
            "neighborhood": "Maarif",
            "status": ListingStatus.PUBLISHED,
        }
        data.update(overrides)
        return data

    @staticmethod
    async def create_listing(
        listing_repo: ListingRepository,
        owner: User,
        minutes_ago: Optional[int] = None,
        **overrides
    ) -> Listing:
        data = ListingFactory.listing_data(**overrides)
        data["user_id"] = owner.id
        if minutes_ago is not None:
            data["created_at"] = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        return await listing_repo.create(data)


class ImageFactory:
    """Factory for stored images attached to a listing."""

    @staticmethod
    async def attach_images(
        image_repo: ImageRepository,
        storage: ImageStorage,
        listing: Listing,
        count: int = 1
    ) -> List[ListingImage]:
        records = []
        for position in range(count):
            path = await storage.store(make_upload(f"photo{position}.jpg"))
            records.append({
                "listing_id": listing.id,
                "path": path,
                "alt_text": f"{listing.title} - Image {position + 1}",
                "sort_order": position,
            })
        return await image_repo.add_many(records)


def image_bytes(fmt: str = "JPEG", size=(32, 24), color=(200, 120, 40)) -> bytes:
    """Encode a small solid-color image."""
    buffer = io.BytesIO()
    PILImage.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(filename: str = "photo.jpg", content: Optional[bytes] = None) -> ImageUpload:
    if content is None:
        fmt = {"png": "PNG", "webp": "WEBP"}.get(filename.rsplit(".", 1)[-1].lower(), "JPEG")
        content = image_bytes(fmt)
    return ImageUpload(filename, content, "image/jpeg")


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for a user."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def listing_form(**overrides) -> Dict[str, str]:
    """Multipart form fields for the listing endpoints."""
    form = {
        "title": "Sunny apartment",
        "description": "Two bedrooms close to the park",
        "price": "250000",
        "surface_area": "85",
        "bedrooms": "2",
        "city": "Casablanca",
        "neighborhood": "Maarif",
    }
    form.update(overrides)
    return form


def image_files(count: int, prefix: str = "photo") -> List:
    """Multipart ``images`` entries for httpx."""
    return [
        ("images", (f"{prefix}{n}.jpg", image_bytes(), "image/jpeg"))
        for n in range(count)
    ]


# Common test fixtures
@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@test.com",
        full_name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="agent@test.com",
        full_name="Test Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def other_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="other.agent@test.com",
        full_name="Other Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def test_client_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="client@test.com",
        full_name="Test Client",
        role=UserRole.CLIENT
    )


@pytest.fixture
async def published_listing(listing_repository: ListingRepository, test_agent: User) -> Listing:
    return await ListingFactory.create_listing(listing_repository, test_agent, title="Published flat")


@pytest.fixture
async def pending_listing(listing_repository: ListingRepository, test_agent: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        test_agent,
        title="Pending flat",
        status=ListingStatus.PENDING
    )
