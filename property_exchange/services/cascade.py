"""
Cascading deletion of listings and users.

Foreign keys are RESTRICT, so dependent rows are removed here, leaves first,
by one deletion plan shared by both entry points. The database work commits
as one unit; image blobs are released afterwards and their failures are
only logged.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement
import uuid
import logging

from property_exchange.config import settings
from property_exchange.database import Base, atomic
from property_exchange.models.favorite import Favorite
from property_exchange.models.listing import Listing
from property_exchange.models.request import ListingRequest
from property_exchange.models.transaction import Transaction
from property_exchange.models.user import User
from property_exchange.repositories.base import BaseRepository
from property_exchange.repositories.listing import ListingRepository
from property_exchange.repositories.request import RequestRepository
from property_exchange.repositories.transaction import TransactionRepository
from property_exchange.repositories.user import UserRepository
from property_exchange.services import access_policy
from property_exchange.services.blob_store import LocalBlobStore, get_blob_store
from property_exchange.services.locking import ListingLockRegistry, listing_locks
from property_exchange.utils.exceptions import CascadeFailedError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeScope:
    """Listings being deleted, plus the user being deleted if any."""

    listing_ids: FrozenSet[uuid.UUID]
    user_id: Optional[uuid.UUID] = None


@dataclass
class CascadeReport:
    root: str
    deleted: Dict[str, int] = field(default_factory=dict)
    released_images: List[str] = field(default_factory=list)
    failed_images: List[str] = field(default_factory=list)

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())


@dataclass(frozen=True)
class DeletionStep:
    model: type
    criterion: Callable[[CascadeScope], Optional[ColumnElement]]

    @property
    def table(self) -> str:
        return self.model.__tablename__


def _any_of(*clauses: Optional[ColumnElement]) -> Optional[ColumnElement]:
    present = [c for c in clauses if c is not None]
    if not present:
        return None
    return present[0] if len(present) == 1 else or_(*present)


def _listing_clause(column, scope: CascadeScope) -> Optional[ColumnElement]:
    return column.in_(scope.listing_ids) if scope.listing_ids else None


def _user_clause(column, scope: CascadeScope) -> Optional[ColumnElement]:
    return column == scope.user_id if scope.user_id is not None else None


# Leaves first; every table in the schema appears exactly once.
DELETION_PLAN: Tuple[DeletionStep, ...] = (
    DeletionStep(
        Favorite,
        lambda s: _any_of(
            _listing_clause(Favorite.listing_id, s),
            _user_clause(Favorite.user_id, s),
        ),
    ),
    DeletionStep(
        ListingRequest,
        lambda s: _any_of(
            _listing_clause(ListingRequest.listing_id, s),
            _user_clause(ListingRequest.requester_id, s),
            _user_clause(ListingRequest.seller_id, s),
        ),
    ),
    DeletionStep(
        Transaction,
        lambda s: _any_of(
            _listing_clause(Transaction.listing_id, s),
            _user_clause(Transaction.buyer_renter_id, s),
        ),
    ),
    DeletionStep(Listing, lambda s: _listing_clause(Listing.id, s)),
    DeletionStep(User, lambda s: _user_clause(User.id, s)),
)


def plan_tables() -> List[str]:
    return [step.table for step in DELETION_PLAN]


def schema_tables() -> Set[str]:
    return set(Base.metadata.tables.keys())


class CascadeCleanupService:
    """Deletes a listing or a user together with everything that references it."""

    def __init__(
        self,
        db_session: AsyncSession,
        blob_store: Optional[LocalBlobStore] = None,
        locks: ListingLockRegistry = listing_locks
    ):
        self.db = db_session
        self.blob_store = blob_store or get_blob_store()
        self.locks = locks
        self.listing_repo = ListingRepository(db_session)
        self.request_repo = RequestRepository(db_session)
        self.transaction_repo = TransactionRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def delete_listing(self, listing_id: uuid.UUID, acting_user: User) -> CascadeReport:
        """
        Delete a listing with its favorites, requests and transactions.

        Raises:
            NotFoundError: Listing missing
            ForbiddenError: Caller is neither the owner nor an admin
            CascadeFailedError: The deletion could not be committed
        """
        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("Listing", str(listing_id))
        if not access_policy.can_manage_listing(listing, acting_user):
            raise ForbiddenError("You can only delete your own listings")

        root = f"listing {listing_id}"
        async with self.locks.hold(listing_id):
            if not await self.listing_repo.exists(listing_id):
                raise NotFoundError("Listing", str(listing_id))
            report, image_refs = await self._run_plan(root, CascadeScope(frozenset({listing_id})), [listing_id])

        await self._release_images(report, image_refs)
        logger.info(f"Deleted {root} by {acting_user.id}: {report.deleted}")
        return report

    async def delete_user(self, user_id: uuid.UUID, acting_user: User) -> CascadeReport:
        """
        Delete a user, their listings and every row referencing either.

        The listing locks for the user's whole subtree are held for the unit.
        If the subtree grows while the locks are being taken, the locks are
        released and the wider set is taken, up to
        ``settings.cascade_lock_attempts`` times.

        Raises:
            NotFoundError: User missing
            ForbiddenError: Caller is neither the user nor an admin
            CascadeFailedError: The subtree kept changing or the deletion could not be committed
        """
        if not access_policy.can_delete_user(user_id, acting_user):
            raise ForbiddenError("You can only delete your own account")
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError("User", str(user_id))

        root = f"user {user_id}"
        locked = await self._affected_listing_ids(user_id)
        outcome = None

        for attempt in range(1, settings.cascade_lock_attempts + 1):
            async with self.locks.hold_many(locked):
                current = await self._affected_listing_ids(user_id)
                if current <= locked:
                    owned = await self.listing_repo.get_owned_ids(user_id)
                    scope = CascadeScope(frozenset(owned), user_id)
                    outcome = await self._run_plan(root, scope, current)
            if outcome is not None:
                break
            logger.warning(f"Listing set of {root} changed while locking (attempt {attempt}), retrying")
            locked = locked | current
        else:
            raise CascadeFailedError(root, "affected listings kept changing")

        report, image_refs = outcome
        await self._release_images(report, image_refs)
        logger.info(f"Deleted {root} by {acting_user.id}: {report.deleted}")
        return report

    async def _affected_listing_ids(self, user_id: uuid.UUID) -> Set[uuid.UUID]:
        owned = await self.listing_repo.get_owned_ids(user_id)
        requested = await self.request_repo.get_listing_ids_for_user(user_id)
        bought = await self.transaction_repo.get_listing_ids_for_buyer(user_id)
        return owned | requested | bought

    async def _run_plan(
        self,
        root: str,
        scope: CascadeScope,
        lock_ids: Iterable[uuid.UUID]
    ) -> Tuple[CascadeReport, List[str]]:
        """Execute the deletion plan as one unit; nothing is kept on failure."""
        report = CascadeReport(root=root)
        try:
            async with atomic(self.db):
                await self.listing_repo.lock_rows(lock_ids)
                image_refs = await self.listing_repo.get_image_refs(scope.listing_ids)

                for step in DELETION_PLAN:
                    criterion = step.criterion(scope)
                    if criterion is None:
                        report.deleted[step.table] = 0
                        continue
                    repo = BaseRepository(step.model, self.db)
                    report.deleted[step.table] = await repo.delete_where(criterion)
        except SQLAlchemyError as e:
            logger.error(f"Cascade deletion of {root} rolled back: {e}")
            raise CascadeFailedError(root, str(e))

        return report, image_refs

    async def _release_images(self, report: CascadeReport, image_refs: List[str]) -> None:
        for ref in image_refs:
            try:
                removed = await self.blob_store.delete(ref)
            except Exception as e:
                logger.warning(f"Could not release image {ref} after {report.root}: {e}")
                report.failed_images.append(ref)
                continue
            if not removed:
                logger.debug(f"Image {ref} was already gone")
            report.released_images.append(ref)
