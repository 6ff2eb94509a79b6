"""
Request workflow: submitting, accepting and rejecting buy/rent requests.

Every write runs under the per-listing lock and commits as one unit. Accept
takes a snapshot of the request and listing, then re-reads both under the
lock; any difference aborts with ConflictError before anything is written.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
import uuid
import logging

from property_exchange.database import atomic, utc_now
from property_exchange.models.request import ONE_PENDING_INDEX, ListingRequest, RequestStatus, RequestType
from property_exchange.models.transaction import Transaction, TransactionType
from property_exchange.models.user import User
from property_exchange.repositories.listing import ListingRepository
from property_exchange.repositories.request import RequestRepository
from property_exchange.repositories.transaction import TransactionRepository
from property_exchange.schemas.request import RequestContact
from property_exchange.services import access_policy
from property_exchange.services.listing_lifecycle import (
    TRANSACTION_TYPE_FOR_OUTCOME,
    outcome_for,
    request_type_for,
    transition,
)
from property_exchange.services.locking import ListingLockRegistry, listing_locks
from property_exchange.utils.exceptions import (
    AlreadyResolvedError,
    ConflictError,
    DuplicatePendingError,
    ForbiddenError,
    NotAvailableError,
    NotFoundError,
    SelfDealingError,
    TypeMismatchError,
)

logger = logging.getLogger(__name__)


def _violates_one_pending(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    # PostgreSQL names the index, SQLite names its columns
    return ONE_PENDING_INDEX in message or "listing_requests.listing_id, listing_requests.requester_id" in message


class RequestWorkflowService:
    """
    Coordinates requests, listings and transactions.

    One instance per database session; the lock registry is shared across
    instances so that concurrent sessions serialize on the same listing.
    """

    def __init__(self, db_session: AsyncSession, locks: ListingLockRegistry = listing_locks):
        self.db = db_session
        self.locks = locks
        self.listing_repo = ListingRepository(db_session)
        self.request_repo = RequestRepository(db_session)
        self.transaction_repo = TransactionRepository(db_session)

    async def submit(
        self,
        listing_id: uuid.UUID,
        requester: User,
        request_type: RequestType,
        contact: Optional[RequestContact] = None
    ) -> ListingRequest:
        """
        Open a request against a listing.

        Checks run in order and the first failure wins.

        Raises:
            NotAvailableError: Listing missing or not available
            TypeMismatchError: Request type does not fit the listing kind
            SelfDealingError: Requester owns the listing
            DuplicatePendingError: Requester already has a pending request on it
        """
        contact_data = contact.model_dump(exclude_none=True) if contact else {}

        async with self.locks.hold(listing_id):
            try:
                async with atomic(self.db):
                    listing = await self.listing_repo.get_by_id(listing_id, fresh=True)
                    if listing is None or not listing.is_available:
                        raise NotAvailableError(str(listing_id))

                    if request_type != request_type_for(listing.kind):
                        raise TypeMismatchError(request_type.value, listing.kind.value)

                    if listing.owner_id == requester.id:
                        raise SelfDealingError()

                    if await self.request_repo.find_pending(listing_id, requester.id):
                        raise DuplicatePendingError(str(listing_id))

                    request = await self.request_repo.create(
                        {
                            "listing_id": listing_id,
                            "requester_id": requester.id,
                            "seller_id": listing.owner_id,
                            "request_type": request_type,
                            "status": RequestStatus.PENDING,
                            "created_at": utc_now(),
                            **contact_data,
                        },
                        commit=False
                    )
            except IntegrityError as e:
                if not _violates_one_pending(e):
                    raise
                raise DuplicatePendingError(str(listing_id))

        logger.info(f"Request {request.id} ({request_type.value}) submitted on listing {listing_id} by {requester.id}")
        return request

    async def accept(self, request_id: uuid.UUID, acting_user: User) -> Transaction:
        """
        Accept a pending request, closing the listing.

        In one commit: the listing becomes SOLD or RENTED, the request is
        ACCEPTED, a Transaction is recorded and every other pending request
        on the listing is REJECTED.

        Raises:
            NotFoundError: Request or listing missing
            ForbiddenError: Caller is not the seller
            AlreadyResolvedError: Request is no longer pending
            NotAvailableError: Listing is no longer available
            ConflictError: Listing or request changed before the lock was taken
        """
        request = await self._get_request_as_seller(request_id, acting_user)
        listing_id = request.listing_id

        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("Listing", str(listing_id))
        if not listing.is_available:
            raise NotAvailableError(str(listing_id))

        seen_version = listing.version
        seen_availability = listing.availability

        async with self.locks.hold(listing_id):
            try:
                async with atomic(self.db):
                    current = await self.listing_repo.get_by_id(listing_id, for_update=True)
                    if current is None:
                        raise ConflictError(f"Listing {listing_id} was deleted")
                    if current.availability != seen_availability or current.version != seen_version:
                        raise ConflictError(f"Listing {listing_id} changed while the request was being accepted")

                    request = await self.request_repo.get_by_id(request_id, fresh=True)
                    if request is None or not request.is_pending:
                        raise ConflictError(f"Request {request_id} changed while it was being accepted")

                    outcome = outcome_for(request.request_type)
                    transition(current, outcome)

                    now = utc_now()
                    request.status = RequestStatus.ACCEPTED
                    request.responded_at = now

                    transaction = await self.transaction_repo.create(
                        {
                            "listing_id": listing_id,
                            "buyer_renter_id": request.requester_id,
                            "transaction_date": now,
                            "transaction_type": TRANSACTION_TYPE_FOR_OUTCOME[outcome],
                            "amount": current.price,
                            "buyer_name": request.contact_name,
                            "buyer_email": request.contact_email,
                            "buyer_phone": request.contact_phone,
                            "buyer_address": request.contact_address,
                        },
                        commit=False
                    )

                    siblings = await self.request_repo.get_pending_siblings(listing_id, request_id)
                    for sibling in siblings:
                        sibling.status = RequestStatus.REJECTED
                        sibling.responded_at = now
            except StaleDataError:
                logger.warning(f"Version check failed while accepting request {request_id}")
                raise ConflictError(f"Listing {listing_id} was modified by another writer")

        logger.info(
            f"Request {request_id} accepted: listing {listing_id} is now {outcome.value}, "
            f"{len(siblings)} competing request(s) rejected"
        )
        return transaction

    async def reject(self, request_id: uuid.UUID, acting_user: User) -> ListingRequest:
        """
        Reject a pending request.

        Raises:
            NotFoundError: Request missing
            ForbiddenError: Caller is not the seller
            AlreadyResolvedError: Request is no longer pending
        """
        request = await self._get_request_as_seller(request_id, acting_user)

        async with self.locks.hold(request.listing_id):
            async with atomic(self.db):
                request = await self.request_repo.get_by_id(request_id, fresh=True)
                if request is None:
                    raise NotFoundError("Request", str(request_id))
                if not request.is_pending:
                    raise AlreadyResolvedError(str(request_id), request.status.value)

                request.status = RequestStatus.REJECTED
                request.responded_at = utc_now()

        logger.info(f"Request {request_id} rejected by {acting_user.id}")
        return request

    async def get_request(self, request_id: uuid.UUID, user: User) -> ListingRequest:
        """Fetch a request visible to its requester or seller."""
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("Request", str(request_id))
        if not access_policy.can_view_request(request, user.id):
            raise ForbiddenError("You don't have permission to view this request")
        return request

    async def list_my_requests(self, user: User) -> List[ListingRequest]:
        return await self.request_repo.list_by_requester(user.id)

    async def list_incoming_requests(self, user: User) -> List[ListingRequest]:
        return await self.request_repo.list_incoming(user.id)

    async def list_purchases(self, user: User) -> List[Transaction]:
        return await self.transaction_repo.list_for_buyer(user.id, TransactionType.SOLD)

    async def list_rentals(self, user: User) -> List[Transaction]:
        return await self.transaction_repo.list_for_buyer(user.id, TransactionType.RENTED)

    async def list_sold(self, user: User) -> List[Transaction]:
        return await self.transaction_repo.list_for_owner(user.id, TransactionType.SOLD)

    async def list_rented(self, user: User) -> List[Transaction]:
        return await self.transaction_repo.list_for_owner(user.id, TransactionType.RENTED)

    async def _get_request_as_seller(self, request_id: uuid.UUID, acting_user: User) -> ListingRequest:
        """Snapshot read shared by accept and reject."""
        request = await self.request_repo.get_by_id(request_id)
        if request is None:
            raise NotFoundError("Request", str(request_id))
        if not access_policy.is_seller(request, acting_user.id):
            raise ForbiddenError("Only the seller can respond to this request")
        if not request.is_pending:
            raise AlreadyResolvedError(str(request_id), request.status.value)
        return request
