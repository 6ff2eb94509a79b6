"""
Transaction repository: purchase/rental history for buyers and owners.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_exchange.repositories.base import BaseRepository
from property_exchange.models.listing import Listing
from property_exchange.models.transaction import Transaction, TransactionType
from typing import List, Set
import uuid


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for completed sales and rentals."""

    def __init__(self, db: AsyncSession):
        super().__init__(Transaction, db)

    async def list_for_buyer(self, buyer_id: uuid.UUID, transaction_type: TransactionType) -> List[Transaction]:
        return await self.get_multi(
            Transaction.buyer_renter_id == buyer_id,
            Transaction.transaction_type == transaction_type,
            order_by="-transaction_date",
        )

    async def list_for_owner(self, owner_id: uuid.UUID, transaction_type: TransactionType) -> List[Transaction]:
        owned = select(Listing.id).where(Listing.owner_id == owner_id)
        return await self.get_multi(
            Transaction.listing_id.in_(owned),
            Transaction.transaction_type == transaction_type,
            order_by="-transaction_date",
        )

    async def get_listing_ids_for_buyer(self, buyer_id: uuid.UUID) -> Set[uuid.UUID]:
        result = await self.db.execute(
            select(Transaction.listing_id).where(Transaction.buyer_renter_id == buyer_id)
        )
        return set(result.scalars().all())
