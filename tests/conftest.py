"""
Test configuration and fixtures for the property exchange API.
Provides a fresh SQLite database per test, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time; point them at throwaway locations first.
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="property-exchange-uploads-"))

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from property_exchange.database import build_engine, create_tables, drop_tables, get_db
from property_exchange.main import app
from property_exchange.models.listing import Listing, ListingKind
from property_exchange.models.request import ListingRequest, RequestType
from property_exchange.models.user import User, UserRole
from property_exchange.repositories.listing import ListingRepository
from property_exchange.repositories.user import UserRepository
from property_exchange.schemas.request import RequestContact
from property_exchange.services.blob_store import LocalBlobStore, get_blob_store
from property_exchange.services.cascade import CascadeCleanupService
from property_exchange.services.locking import ListingLockRegistry
from property_exchange.services.request_workflow import RequestWorkflowService


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite engine so that several sessions can share one database."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(test_engine)
    yield test_engine
    await drop_tables(test_engine)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(base_dir=tmp_path / "uploads", media_url="/media")


@pytest.fixture
def locks() -> ListingLockRegistry:
    return ListingLockRegistry(timeout=5.0)


@pytest.fixture
def workflow(db_session: AsyncSession, locks: ListingLockRegistry) -> RequestWorkflowService:
    return RequestWorkflowService(db_session, locks=locks)


@pytest.fixture
def cascade(db_session: AsyncSession, blob_store: LocalBlobStore, locks: ListingLockRegistry) -> CascadeCleanupService:
    return CascadeCleanupService(db_session, blob_store=blob_store, locks=locks)


@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def listing_repository(db_session: AsyncSession) -> ListingRepository:
    return ListingRepository(db_session)


@pytest.fixture
async def async_client(session_factory, blob_store: LocalBlobStore) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def make_image_bytes(fmt: str = "PNG", size=(8, 8)) -> bytes:
    """Encode a tiny solid image."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 40, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class ListingFactory:
    """Factory for creating test listings."""

    @staticmethod
    def create_listing_data(
        owner_id: uuid.UUID,
        title: str = "Test Listing",
        address: str = "1 Test Street",
        price: Decimal = Decimal("100000.00"),
        kind: ListingKind = ListingKind.FOR_SALE,
        description: Optional[str] = "A test listing",
        image_ref: Optional[str] = None
    ) -> dict:
        return {
            "owner_id": owner_id,
            "title": title,
            "address": address,
            "price": price,
            "kind": kind,
            "description": description,
            "image_ref": image_ref
        }

    @staticmethod
    async def create_listing(listing_repo: ListingRepository, owner_id: uuid.UUID, **kwargs) -> Listing:
        """Create a test listing in the database."""
        return await listing_repo.create(ListingFactory.create_listing_data(owner_id, **kwargs))


class RequestFactory:
    """Requests are created through the workflow so they carry real preconditions."""

    @staticmethod
    async def submit(
        workflow: RequestWorkflowService,
        listing: Listing,
        requester: User,
        request_type: Optional[RequestType] = None,
        **contact
    ) -> ListingRequest:
        if request_type is None:
            request_type = RequestType.BUY if listing.kind == ListingKind.FOR_SALE else RequestType.RENT
        contact.setdefault("contact_name", requester.full_name)
        contact.setdefault("contact_email", requester.email)
        return await workflow.submit(listing.id, requester, request_type, RequestContact(**contact))


# Common test fixtures
@pytest.fixture
async def owner(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="owner@test.com", full_name="Listing Owner")


@pytest.fixture
async def buyer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="buyer@test.com", full_name="First Buyer")


@pytest.fixture
async def second_buyer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(user_repository, email="buyer2@test.com", full_name="Second Buyer")


@pytest.fixture
async def admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@test.com",
        full_name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def sale_listing(listing_repository: ListingRepository, owner: User) -> Listing:
    return await ListingFactory.create_listing(listing_repository, owner.id, title="House for sale")


@pytest.fixture
async def rent_listing(listing_repository: ListingRepository, owner: User) -> Listing:
    return await ListingFactory.create_listing(
        listing_repository,
        owner.id,
        title="Flat for rent",
        price=Decimal("1500.00"),
        kind=ListingKind.FOR_RENT
    )


def auth_headers(user: User) -> dict:
    return {"X-User-Id": str(user.id)}


async def count_rows(session_factory, model, *criteria) -> int:
    """Count rows through a separate session, seeing only committed data."""
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model).where(*criteria))
        return result.scalar_one()
