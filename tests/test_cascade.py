"""
Tests for cascading deletion of listings and users.
"""

import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from property_exchange.database import Base
from property_exchange.models.favorite import Favorite
from property_exchange.models.listing import Listing, ListingKind
from property_exchange.models.request import ListingRequest
from property_exchange.models.transaction import Transaction
from property_exchange.models.user import User
from property_exchange.repositories.base import BaseRepository
from property_exchange.repositories.listing import ListingRepository
from property_exchange.repositories.user import UserRepository
from property_exchange.services.blob_store import LocalBlobStore
from property_exchange.services.cascade import (
    DELETION_PLAN,
    CascadeCleanupService,
    CascadeScope,
    plan_tables,
    schema_tables,
)
from property_exchange.utils.exceptions import CascadeFailedError, ForbiddenError, NotFoundError
from tests.conftest import ListingFactory, RequestFactory, UserFactory, count_rows, make_image_bytes


class BrokenBlobStore(LocalBlobStore):
    """Blob store whose deletes always fail with an I/O error."""

    async def delete(self, ref: str) -> bool:
        raise OSError(f"storage unavailable for {ref}")


async def favorite(db_session, user: User, listing: Listing) -> Favorite:
    return await BaseRepository(Favorite, db_session).create({"user_id": user.id, "listing_id": listing.id})


class TestDeletionPlan:

    def test_plan_covers_every_table_once(self):
        tables = plan_tables()

        assert len(tables) == len(set(tables))
        assert set(tables) == schema_tables()

    def test_plan_deletes_referencing_tables_first(self):
        order = {table: index for index, table in enumerate(plan_tables())}

        for name, table in Base.metadata.tables.items():
            for fk in table.foreign_keys:
                referenced = fk.column.table.name
                assert order[name] < order[referenced], f"{name} must be deleted before {referenced}"

    def test_empty_scope_selects_nothing(self):
        scope = CascadeScope(frozenset())

        assert all(step.criterion(scope) is None for step in DELETION_PLAN)


class TestDeleteListing:

    async def test_removes_listing_and_dependents(
        self, db_session, session_factory, cascade, workflow, blob_store,
        listing_repository: ListingRepository, owner: User, buyer: User, second_buyer: User
    ):
        image_ref = await blob_store.store(make_image_bytes())
        listing = await ListingFactory.create_listing(listing_repository, owner.id, image_ref=image_ref)
        sold = await RequestFactory.submit(workflow, listing, buyer)
        await RequestFactory.submit(workflow, listing, second_buyer)
        await workflow.accept(sold.id, owner)
        await favorite(db_session, second_buyer, listing)

        report = await cascade.delete_listing(listing.id, owner)

        assert report.deleted == {
            "favorites": 1,
            "listing_requests": 2,
            "transactions": 1,
            "listings": 1,
            "users": 0,
        }
        assert report.released_images == [image_ref]
        assert report.failed_images == []
        assert not await blob_store.exists(image_ref)

        assert await count_rows(session_factory, Listing, Listing.id == listing.id) == 0
        assert await count_rows(session_factory, ListingRequest, ListingRequest.listing_id == listing.id) == 0
        assert await count_rows(session_factory, Transaction, Transaction.listing_id == listing.id) == 0
        assert await count_rows(session_factory, Favorite, Favorite.listing_id == listing.id) == 0
        assert await count_rows(session_factory, User) == 3

    async def test_other_listings_untouched(
        self, db_session, session_factory, cascade, workflow, sale_listing: Listing, rent_listing: Listing,
        owner: User, buyer: User
    ):
        await RequestFactory.submit(workflow, rent_listing, buyer)
        await favorite(db_session, buyer, rent_listing)

        await cascade.delete_listing(sale_listing.id, owner)

        assert await count_rows(session_factory, Listing, Listing.id == rent_listing.id) == 1
        assert await count_rows(session_factory, ListingRequest) == 1
        assert await count_rows(session_factory, Favorite) == 1

    async def test_only_owner_or_admin(
        self, session_factory, cascade, sale_listing: Listing, buyer: User, admin: User
    ):
        with pytest.raises(ForbiddenError):
            await cascade.delete_listing(sale_listing.id, buyer)
        assert await count_rows(session_factory, Listing) == 1

        await cascade.delete_listing(sale_listing.id, admin)
        assert await count_rows(session_factory, Listing) == 0

    async def test_missing_listing(self, cascade, owner: User):
        with pytest.raises(NotFoundError):
            await cascade.delete_listing(uuid.uuid4(), owner)

    async def test_blob_failure_does_not_abort_cleanup(
        self, db_session, session_factory, tmp_path, locks, blob_store,
        listing_repository: ListingRepository, owner: User
    ):
        image_ref = await blob_store.store(make_image_bytes("JPEG"))
        listing = await ListingFactory.create_listing(listing_repository, owner.id, image_ref=image_ref)
        broken = BrokenBlobStore(base_dir=tmp_path / "uploads")
        service = CascadeCleanupService(db_session, blob_store=broken, locks=locks)

        report = await service.delete_listing(listing.id, owner)

        assert report.failed_images == [image_ref]
        assert report.released_images == []
        assert await count_rows(session_factory, Listing) == 0

    async def test_already_missing_image_counts_as_released(
        self, cascade, blob_store, listing_repository: ListingRepository, owner: User
    ):
        listing = await ListingFactory.create_listing(listing_repository, owner.id, image_ref="listings/gone.png")

        report = await cascade.delete_listing(listing.id, owner)

        assert report.released_images == ["listings/gone.png"]
        assert report.failed_images == []

    async def test_database_failure_rolls_back_everything(
        self, db_session, session_factory, cascade, workflow, sale_listing: Listing,
        owner: User, buyer: User, monkeypatch
    ):
        await RequestFactory.submit(workflow, sale_listing, buyer)
        await favorite(db_session, buyer, sale_listing)

        original = BaseRepository.delete_where

        async def failing_delete_where(self, criterion, commit=False):
            if self.model is Transaction:
                raise SQLAlchemyError("disk I/O error")
            return await original(self, criterion, commit=commit)

        monkeypatch.setattr(BaseRepository, "delete_where", failing_delete_where)

        with pytest.raises(CascadeFailedError) as exc_info:
            await cascade.delete_listing(sale_listing.id, owner)

        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "CASCADE_FAILED"
        assert await count_rows(session_factory, Favorite) == 1
        assert await count_rows(session_factory, ListingRequest) == 1
        assert await count_rows(session_factory, Listing) == 1


class TestDeleteUser:

    async def test_owner_with_pending_requests_and_prior_transaction(
        self, db_session, session_factory, cascade, workflow, blob_store,
        user_repository: UserRepository, listing_repository: ListingRepository,
        owner: User, buyer: User, second_buyer: User
    ):
        other_owner = await UserFactory.create_user(user_repository, full_name="Other Owner")
        image_ref = await blob_store.store(make_image_bytes())

        house = await ListingFactory.create_listing(listing_repository, owner.id, image_ref=image_ref)
        flat = await ListingFactory.create_listing(listing_repository, owner.id, kind=ListingKind.FOR_RENT)
        elsewhere = await ListingFactory.create_listing(listing_repository, other_owner.id, title="Elsewhere")
        bought = await ListingFactory.create_listing(listing_repository, other_owner.id, title="Bought by owner")

        # Pending requests on the owner's listing
        await RequestFactory.submit(workflow, house, buyer)
        await RequestFactory.submit(workflow, house, second_buyer)
        # A prior rental of the owner's flat
        rental = await RequestFactory.submit(workflow, flat, buyer)
        await workflow.accept(rental.id, owner)
        # The owner as requester, buyer and favoriter on other people's listings
        await RequestFactory.submit(workflow, elsewhere, owner)
        purchase = await RequestFactory.submit(workflow, bought, owner)
        await workflow.accept(purchase.id, other_owner)
        await favorite(db_session, owner, elsewhere)
        await favorite(db_session, buyer, house)

        report = await cascade.delete_user(owner.id, owner)

        assert report.deleted == {
            "favorites": 2,
            "listing_requests": 5,
            "transactions": 2,
            "listings": 2,
            "users": 1,
        }
        assert report.released_images == [image_ref]
        assert not await blob_store.exists(image_ref)

        owned = [house.id, flat.id]
        assert await count_rows(session_factory, User, User.id == owner.id) == 0
        assert await count_rows(session_factory, Listing, Listing.owner_id == owner.id) == 0
        assert await count_rows(session_factory, Listing) == 2
        assert await count_rows(
            session_factory, ListingRequest,
            (ListingRequest.requester_id == owner.id)
            | (ListingRequest.seller_id == owner.id)
            | ListingRequest.listing_id.in_(owned)
        ) == 0
        assert await count_rows(
            session_factory, Transaction,
            (Transaction.buyer_renter_id == owner.id) | Transaction.listing_id.in_(owned)
        ) == 0
        assert await count_rows(
            session_factory, Favorite,
            (Favorite.user_id == owner.id) | Favorite.listing_id.in_(owned)
        ) == 0
        assert await count_rows(session_factory, User) == 3

    async def test_user_without_activity(self, session_factory, cascade, buyer: User):
        report = await cascade.delete_user(buyer.id, buyer)

        assert report.deleted["users"] == 1
        assert report.total_deleted == 1
        assert await count_rows(session_factory, User, User.id == buyer.id) == 0

    async def test_only_self_or_admin(self, session_factory, cascade, owner: User, buyer: User, admin: User):
        with pytest.raises(ForbiddenError):
            await cascade.delete_user(owner.id, buyer)

        await cascade.delete_user(owner.id, admin)
        assert await count_rows(session_factory, User, User.id == owner.id) == 0

    async def test_missing_user(self, cascade, admin: User):
        with pytest.raises(NotFoundError):
            await cascade.delete_user(uuid.uuid4(), admin)

    async def test_retries_when_subtree_grows(self, cascade, sale_listing: Listing, owner: User, monkeypatch):
        real = cascade._affected_listing_ids
        calls = []

        async def grows_after_first_look(user_id):
            calls.append(user_id)
            ids = await real(user_id)
            return set() if len(calls) == 1 else ids

        monkeypatch.setattr(cascade, "_affected_listing_ids", grows_after_first_look)

        report = await cascade.delete_user(owner.id, owner)

        assert len(calls) == 3
        assert report.deleted["listings"] == 1

    async def test_gives_up_when_subtree_keeps_growing(
        self, session_factory, cascade, owner: User, monkeypatch
    ):
        async def always_new(user_id):
            return {uuid.uuid4()}

        monkeypatch.setattr(cascade, "_affected_listing_ids", always_new)

        with pytest.raises(CascadeFailedError):
            await cascade.delete_user(owner.id, owner)
        assert await count_rows(session_factory, User, User.id == owner.id) == 1
