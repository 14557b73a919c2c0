import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Optional
from uuid import UUID

from tortoise.backends.base.client import BaseDBAsyncClient

from livebid.models.auction import Auction
from livebid.services.auction.errors import AuctionLockTimeout


class AuctionLockRegistry:
    """
    One asyncio.Lock per auction id.

    Bid commits and lifecycle transitions for the same auction take the same
    lock before opening their transaction, so within this process they always
    serialize; the row lock inside the transaction covers other writers.
    """

    def __init__(self):
        self._locks: Dict[UUID, asyncio.Lock] = {}

    def get(self, auction_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(auction_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[auction_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, auction_id: UUID, timeout: float):
        lock = self.get(auction_id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            raise AuctionLockTimeout(f"Auction {auction_id} is busy, please retry") from None
        try:
            yield
        finally:
            lock.release()

    def discard(self, auction_id: UUID):
        # Only idle locks are dropped; the row lock still guards a late waiter
        lock = self._locks.get(auction_id)
        if lock is not None and not lock.locked():
            del self._locks[auction_id]

    def __len__(self):
        return len(self._locks)


async def lock_auction_row(auction_id: UUID, connection: BaseDBAsyncClient, timeout: float) -> Optional[Auction]:
    """Re-read the auction row with a write lock inside the caller's transaction"""
    if connection.capabilities.dialect == "postgres":
        await connection.execute_script(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'")
    return await Auction.filter(id=auction_id).using_db(connection).select_for_update().first()
