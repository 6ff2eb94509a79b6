"""
Request repository: pending-request lookups and the seller/requester views.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from property_exchange.repositories.base import BaseRepository
from property_exchange.models.request import ListingRequest, RequestStatus
from typing import List, Optional, Set
import uuid
import logging

logger = logging.getLogger(__name__)


class RequestRepository(BaseRepository[ListingRequest]):
    """Repository for buy/rent requests."""

    def __init__(self, db: AsyncSession):
        super().__init__(ListingRequest, db)

    async def find_pending(self, listing_id: uuid.UUID, requester_id: uuid.UUID) -> Optional[ListingRequest]:
        """Return the open request of a requester on a listing, if any."""
        result = await self.db.execute(
            select(ListingRequest).where(
                ListingRequest.listing_id == listing_id,
                ListingRequest.requester_id == requester_id,
                ListingRequest.status == RequestStatus.PENDING,
            )
        )
        return result.scalars().first()

    async def get_pending_siblings(
        self,
        listing_id: uuid.UUID,
        exclude_id: uuid.UUID
    ) -> List[ListingRequest]:
        """
        Load every other pending request on a listing, locking the rows.
        """
        result = await self.db.execute(
            select(ListingRequest)
            .where(
                ListingRequest.listing_id == listing_id,
                ListingRequest.id != exclude_id,
                ListingRequest.status == RequestStatus.PENDING,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_by_requester(self, requester_id: uuid.UUID) -> List[ListingRequest]:
        return await self.get_multi(ListingRequest.requester_id == requester_id)

    async def list_incoming(self, seller_id: uuid.UUID) -> List[ListingRequest]:
        return await self.get_multi(
            ListingRequest.seller_id == seller_id,
            ListingRequest.status == RequestStatus.PENDING,
        )

    async def get_listing_ids_for_user(self, user_id: uuid.UUID) -> Set[uuid.UUID]:
        """Listings on which the user is requester or seller."""
        result = await self.db.execute(
            select(ListingRequest.listing_id).where(
                or_(ListingRequest.requester_id == user_id, ListingRequest.seller_id == user_id)
            )
        )
        return set(result.scalars().all())
