"""
Listing repository with owner lookups and row locking for the workflow.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_exchange.repositories.base import BaseRepository
from property_exchange.models.listing import Listing
from typing import Iterable, List, Set
import uuid
import logging

logger = logging.getLogger(__name__)


class ListingRepository(BaseRepository[Listing]):
    """Repository for listings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def get_owned_ids(self, owner_id: uuid.UUID) -> Set[uuid.UUID]:
        result = await self.db.execute(select(Listing.id).where(Listing.owner_id == owner_id))
        return set(result.scalars().all())

    async def lock_rows(self, listing_ids: Iterable[uuid.UUID]) -> List[Listing]:
        """
        Take row locks on a set of listings, in id order.

        PostgreSQL holds the locks until the surrounding transaction ends;
        SQLite has no row locks and relies on the in-process lock registry.
        """
        ids = sorted(listing_ids, key=str)
        if not ids:
            return []

        result = await self.db.execute(
            select(Listing)
            .where(Listing.id.in_(ids))
            .order_by(Listing.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        listings = list(result.scalars().all())
        logger.debug(f"Locked {len(listings)} listing rows")
        return listings

    async def get_image_refs(self, listing_ids: Iterable[uuid.UUID]) -> List[str]:
        ids = list(listing_ids)
        if not ids:
            return []
        result = await self.db.execute(
            select(Listing.image_ref).where(Listing.id.in_(ids), Listing.image_ref.isnot(None))
        )
        return list(result.scalars().all())
