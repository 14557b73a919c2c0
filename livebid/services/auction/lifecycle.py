from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from loguru import logger
from tortoise.transactions import in_transaction

from livebid.core.clock import as_utc, utcnow
from livebid.core.config import settings
from livebid.enums.activity_type import ActivityType
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction
from livebid.models.user import User
from livebid.services.activity_service import ActivityService
from livebid.services.auction.errors import AuctionNotEndedError, AuctionNotFoundError
from livebid.services.auction.locks import AuctionLockRegistry, lock_auction_row
from livebid.services.auction.winner import Resolution, WinnerResolver
from livebid.services.realtime import events
from livebid.services.realtime.broadcaster import EventBroadcaster


def compute_status(
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    stored: Optional[AuctionStatus] = None,
) -> AuctionStatus:
    """Status as a function of the schedule and the clock; once ended it stays ended"""
    if stored == AuctionStatus.ended:
        return AuctionStatus.ended
    now = as_utc(now)
    if now >= as_utc(end_time):
        return AuctionStatus.ended
    if now >= as_utc(start_time):
        return AuctionStatus.live
    return AuctionStatus.upcoming


@dataclass
class Transition:
    auction_id: UUID
    from_status: AuctionStatus
    to_status: AuctionStatus
    resolution: Optional[Resolution] = None


class LifecycleService:
    """Drives upcoming -> live -> ended for one auction at a time"""

    def __init__(
        self,
        locks: AuctionLockRegistry,
        broadcaster: EventBroadcaster,
        activity: ActivityService,
        resolver: Optional[WinnerResolver] = None,
        connection_name: str = "default",
        lock_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.locks = locks
        self.broadcaster = broadcaster
        self.activity = activity
        self.resolver = resolver or WinnerResolver()
        self.connection_name = connection_name
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.bid_lock_timeout
        self.clock = clock

    async def advance(self, auction_id: UUID, now: Optional[datetime] = None) -> List[Transition]:
        """
        Apply every transition that is due for the auction.

        Runs under the same per-auction lock and row lock as bid commits, and
        every write is guarded on the current status, so re-running it (or
        running it from two sweeps at once) never repeats a transition.
        """
        transitions: List[Transition] = []

        async with self.locks.hold(auction_id, self.lock_timeout):
            async with in_transaction(self.connection_name) as connection:
                auction = await lock_auction_row(auction_id, connection, self.lock_timeout)
                if auction is None:
                    return transitions

                now = as_utc(now or self.clock())

                if auction.status == AuctionStatus.upcoming and now >= as_utc(auction.start_time):
                    updated = await Auction.filter(
                        id=auction_id, status=AuctionStatus.upcoming
                    ).using_db(connection).update(status=AuctionStatus.live)
                    if updated:
                        auction.status = AuctionStatus.live
                        transitions.append(Transition(auction_id, AuctionStatus.upcoming, AuctionStatus.live))

                if auction.status == AuctionStatus.live and now >= as_utc(auction.end_time):
                    resolution = await self.resolver.resolve_in_transaction(auction, connection)
                    if resolution is not None:
                        transitions.append(
                            Transition(auction_id, AuctionStatus.live, AuctionStatus.ended, resolution)
                        )

        if transitions:
            await self._announce(auction, transitions)
        if auction.status == AuctionStatus.ended:
            self.locks.discard(auction_id)
        return transitions

    async def _announce(self, auction: Auction, transitions: List[Transition]):
        for transition in transitions:
            if transition.to_status == AuctionStatus.live:
                logger.info(f"Started auction: {auction.id}")
                events.emit_auction_started(self.broadcaster, auction)
                events.emit_status_changed(self.broadcaster, auction, transition.to_status)
                await self.activity.log(ActivityType.auction_started, auction_id=auction.id)
                continue

            resolution = transition.resolution
            winner = await User.get_or_none(id=resolution.winner_id) if resolution.winner_id else None
            logger.info(
                f"Ended auction: {auction.id}, winner={resolution.winner_id}, price={resolution.final_price}"
            )
            events.emit_auction_ended(self.broadcaster, auction, resolution.winning_bid, winner)
            events.emit_status_changed(self.broadcaster, auction, transition.to_status, winner)
            await self.activity.log(
                ActivityType.auction_ended,
                user_id=resolution.winner_id,
                auction_id=auction.id,
                amount=resolution.final_price,
            )

    async def resolve_winner(self, auction_id: UUID, now: Optional[datetime] = None) -> Auction:
        """
        Admin entry point; reuses the end transition.

        An auction that already ended keeps its recorded winner. An auction
        whose end time has not passed is refused.
        """
        await self.advance(auction_id, now)
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        if auction.status != AuctionStatus.ended:
            raise AuctionNotEndedError(f"Auction {auction_id} ends at {auction.end_time.isoformat()}")
        return auction
