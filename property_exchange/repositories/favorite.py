"""
Favorite repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_exchange.repositories.base import BaseRepository
from property_exchange.models.favorite import Favorite
from property_exchange.models.listing import Listing
from typing import List, Optional
import uuid


class FavoriteRepository(BaseRepository[Favorite]):
    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def find(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> Optional[Favorite]:
        result = await self.db.execute(
            select(Favorite).where(Favorite.user_id == user_id, Favorite.listing_id == listing_id)
        )
        return result.scalar_one_or_none()

    async def list_listings(self, user_id: uuid.UUID) -> List[Listing]:
        """Listings the user has marked, most recently favorited first."""
        result = await self.db.execute(
            select(Listing)
            .join(Favorite, Favorite.listing_id == Listing.id)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc())
        )
        return list(result.scalars().all())
