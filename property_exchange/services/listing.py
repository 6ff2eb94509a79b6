"""
Listing service for creating and reading listings.
Images are stored through the blob store before the row is inserted and released again if the insert fails.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from property_exchange.models.listing import Availability, Listing
from property_exchange.models.user import User
from property_exchange.repositories.listing import ListingRepository
from property_exchange.schemas.listing import ListingCreate, ListingResponse
from property_exchange.services.blob_store import LocalBlobStore, get_blob_store
from property_exchange.services.cascade import CascadeCleanupService, CascadeReport
from property_exchange.services.locking import ListingLockRegistry, listing_locks
from property_exchange.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class ListingService:
    """Listing creation, lookup and deletion."""

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

    async def create_listing(
        self,
        listing_data: ListingCreate,
        owner: User,
        image: Optional[bytes] = None,
        filename: Optional[str] = None
    ) -> Listing:
        """
        Create an available listing owned by ``owner``.

        Args:
            listing_data: Listing fields
            owner: User creating the listing
            image: Optional raw image bytes
            filename: Original image filename

        Returns:
            Created listing

        Raises:
            ValidationError: If the image is rejected
        """
        image_ref = None
        if image is not None:
            image_ref = await self.blob_store.store(image, filename)

        create_data = listing_data.model_dump()
        create_data.update({
            "owner_id": owner.id,
            "availability": Availability.AVAILABLE,
            "image_ref": image_ref,
        })

        try:
            listing = await self.listing_repo.create(create_data)
        except Exception:
            if image_ref:
                try:
                    await self.blob_store.delete(image_ref)
                except OSError as e:
                    logger.warning(f"Could not release image {image_ref} after failed insert: {e}")
            raise

        logger.info(f"Listing created by user {owner.id}: {listing.title} (ID: {listing.id})")
        return listing

    async def get_listing(self, listing_id: uuid.UUID) -> Listing:
        """
        Raises:
            NotFoundError: If the listing doesn't exist
        """
        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("Listing", str(listing_id))
        return listing

    async def delete_listing(self, listing_id: uuid.UUID, acting_user: User) -> CascadeReport:
        cascade = CascadeCleanupService(self.db, blob_store=self.blob_store, locks=self.locks)
        return await cascade.delete_listing(listing_id, acting_user)

    def to_response(self, listing: Listing) -> ListingResponse:
        response = ListingResponse.model_validate(listing)
        return response.model_copy(update={"image_url": self.blob_store.url(listing.image_ref)})
