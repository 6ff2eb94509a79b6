"""
Per-listing serialization point.

Every writer of a listing's availability, and every cascade touching a
listing, holds that listing's lock for the whole of its atomic unit. Locks
exist only while someone holds or waits for them.
"""

from contextlib import asynccontextmanager, AsyncExitStack
from typing import AsyncIterator, Dict, Iterable, Optional
import asyncio
import logging
import uuid

from property_exchange.config import settings
from property_exchange.utils.exceptions import ConflictError

logger = logging.getLogger(__name__)


class ListingLockRegistry:
    """Keyed asyncio locks, one per listing id."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._locks: Dict[uuid.UUID, asyncio.Lock] = {}
        self._users: Dict[uuid.UUID, int] = {}

    def is_locked(self, listing_id: uuid.UUID) -> bool:
        lock = self._locks.get(listing_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, listing_id: uuid.UUID) -> AsyncIterator[None]:
        """
        Hold the lock for one listing.

        Raises:
            ConflictError: If the lock is not acquired within the timeout
        """
        lock = self._locks.setdefault(listing_id, asyncio.Lock())
        self._users[listing_id] = self._users.get(listing_id, 0) + 1
        timeout = self.timeout if self.timeout is not None else settings.listing_lock_timeout
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Timed out waiting {timeout}s for listing lock {listing_id}")
                raise ConflictError(f"Listing {listing_id} is busy, try again")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[listing_id] -= 1
            if self._users[listing_id] == 0:
                del self._users[listing_id]
                del self._locks[listing_id]

    @asynccontextmanager
    async def hold_many(self, listing_ids: Iterable[uuid.UUID]) -> AsyncIterator[None]:
        """Hold several listing locks, acquired in sorted order."""
        async with AsyncExitStack() as stack:
            for listing_id in sorted(set(listing_ids), key=str):
                await stack.enter_async_context(self.hold(listing_id))
            yield


# Shared by every service instance in the process
listing_locks = ListingLockRegistry()
