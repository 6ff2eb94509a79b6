"""
Tests for the per-listing lock registry.
"""

import asyncio
import uuid

import pytest

from property_exchange.services.locking import ListingLockRegistry
from property_exchange.utils.exceptions import ConflictError


async def test_hold_serializes_same_listing():
    locks = ListingLockRegistry(timeout=5)
    listing_id = uuid.uuid4()
    events = []

    async def worker(name):
        async with locks.hold(listing_id):
            events.append(f"{name} in")
            await asyncio.sleep(0.01)
            events.append(f"{name} out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (["a in", "a out", "b in", "b out"], ["b in", "b out", "a in", "a out"])


async def test_different_listings_do_not_block():
    locks = ListingLockRegistry(timeout=0.1)
    first, second = uuid.uuid4(), uuid.uuid4()

    async with locks.hold(first):
        async with locks.hold(second):
            assert locks.is_locked(first)
            assert locks.is_locked(second)


async def test_timeout_raises_conflict():
    locks = ListingLockRegistry(timeout=0.05)
    listing_id = uuid.uuid4()

    async with locks.hold(listing_id):
        with pytest.raises(ConflictError):
            async with locks.hold(listing_id):
                pass

    assert not locks.is_locked(listing_id)


async def test_locks_are_dropped_when_unused():
    locks = ListingLockRegistry(timeout=1)
    ids = [uuid.uuid4() for _ in range(3)]

    async with locks.hold_many(ids):
        assert all(locks.is_locked(listing_id) for listing_id in ids)

    assert locks._locks == {}
    assert locks._users == {}


async def test_hold_many_accepts_duplicates():
    locks = ListingLockRegistry(timeout=0.1)
    listing_id = uuid.uuid4()

    async with locks.hold_many([listing_id, listing_id]):
        assert locks.is_locked(listing_id)
