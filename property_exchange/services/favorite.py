"""
Favorites: per-user bookmarks on listings.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from property_exchange.database import atomic
from property_exchange.models.listing import Listing
from property_exchange.models.user import User
from property_exchange.repositories.favorite import FavoriteRepository
from property_exchange.repositories.listing import ListingRepository
from property_exchange.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.listing_repo = ListingRepository(db_session)

    async def toggle(self, user: User, listing_id: uuid.UUID) -> bool:
        """
        Add or remove a listing from the user's favorites.

        Returns:
            True if the listing is now a favorite, False if it was removed

        Raises:
            NotFoundError: If the listing doesn't exist
        """
        if not await self.listing_repo.exists(listing_id):
            raise NotFoundError("Listing", str(listing_id))

        async with atomic(self.db):
            favorite = await self.favorite_repo.find(user.id, listing_id)
            if favorite:
                await self.favorite_repo.delete(favorite.id, commit=False)
                added = False
            else:
                await self.favorite_repo.create({"user_id": user.id, "listing_id": listing_id}, commit=False)
                added = True

        logger.info(f"User {user.id} {'added' if added else 'removed'} favorite {listing_id}")
        return added

    async def list_favorites(self, user: User) -> List[Listing]:
        return await self.favorite_repo.list_listings(user.id)
