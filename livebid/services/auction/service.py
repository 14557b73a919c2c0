from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from livebid.core.clock import as_utc, utcnow
from livebid.core.config import settings
from livebid.enums.activity_type import ActivityType
from livebid.models.auction import Auction
from livebid.models.user import User
from livebid.schemas.auction import AuctionCreate, AuctionSnapshot, AuctionUpdate
from livebid.services.activity_service import ActivityService
from livebid.services.auction.ledger import AuctionLedger, CommittedBid
from livebid.services.auction.lifecycle import LifecycleService
from livebid.services.auction.locks import AuctionLockRegistry
from livebid.services.auction.scheduler import AuctionScheduler, SweepResult
from livebid.services.kafka.producer import KafkaProducer
from livebid.services.realtime import events
from livebid.services.realtime.broadcaster import EventBroadcaster


class AuctionService:
    """Entry point used by the API: wires the ledger, lifecycle, scheduler and broadcaster"""

    def __init__(
        self,
        ledger: AuctionLedger,
        lifecycle: LifecycleService,
        scheduler: AuctionScheduler,
        broadcaster: EventBroadcaster,
        activity: ActivityService,
        potential_winner_window: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger
        self.lifecycle = lifecycle
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.activity = activity
        self.potential_winner_window = (
            potential_winner_window if potential_winner_window is not None
            else settings.potential_winner_window
        )
        self.clock = clock

    @classmethod
    def build(
        cls,
        producer: Optional[KafkaProducer] = None,
        connection_name: str = "default",
        clock: Callable[[], datetime] = utcnow,
        sweep_interval: Optional[float] = None,
        lock_timeout: Optional[float] = None,
    ) -> "AuctionService":
        locks = AuctionLockRegistry()
        broadcaster = EventBroadcaster()
        activity = ActivityService(producer)
        ledger = AuctionLedger(locks, connection_name=connection_name, lock_timeout=lock_timeout, clock=clock)
        lifecycle = LifecycleService(
            locks, broadcaster, activity,
            connection_name=connection_name, lock_timeout=lock_timeout, clock=clock,
        )
        scheduler = AuctionScheduler(lifecycle, interval=sweep_interval, clock=clock)
        return cls(ledger, lifecycle, scheduler, broadcaster, activity, clock=clock)

    async def create_auction(self, seller: User, data: AuctionCreate) -> Auction:
        auction = await self.ledger.create_auction(seller.id, data)
        self.scheduler.track(auction)
        await self.activity.log(
            ActivityType.auction_created,
            user_id=seller.id,
            auction_id=auction.id,
            title=auction.title,
        )
        return auction

    async def update_auction(self, seller: User, auction_id: UUID, data: AuctionUpdate) -> Auction:
        auction = await self.ledger.update_auction(auction_id, seller.id, data)
        self.scheduler.track(auction)
        return auction

    async def delete_auction(self, actor: User, auction_id: UUID) -> AuctionSnapshot:
        snapshot = await self.ledger.delete_auction(auction_id, actor)
        self.scheduler.cancel(auction_id)
        await self.activity.log(
            ActivityType.auction_deleted,
            user_id=actor.id,
            auction_id=auction_id,
            title=snapshot.title,
        )
        return snapshot

    async def get_auction_snapshot(self, auction_id: UUID) -> Optional[AuctionSnapshot]:
        return await self.ledger.get_snapshot(auction_id)

    async def view_auction(self, auction_id: UUID) -> AuctionSnapshot:
        return await self.ledger.record_view(auction_id)

    async def place_bid(self, bidder: User, auction_id: UUID, amount) -> CommittedBid:
        committed = await self.ledger.place_bid(auction_id, bidder.id, amount)
        auction, bid = committed.auction, committed.bid

        events.emit_bid_accepted(self.broadcaster, auction, bid, bidder)
        remaining = (as_utc(auction.end_time) - as_utc(bid.created_at)).total_seconds()
        if remaining < self.potential_winner_window:
            events.emit_potential_winner(self.broadcaster, auction, bidder, bid.amount)

        await self.activity.log(
            ActivityType.bid_placed,
            user_id=bidder.id,
            auction_id=auction_id,
            amount=bid.amount,
        )
        return committed

    async def resolve_winner(self, auction_id: UUID) -> Auction:
        auction = await self.lifecycle.resolve_winner(auction_id)
        self.scheduler.cancel(auction_id)
        return auction

    async def sweep(self) -> SweepResult:
        return await self.scheduler.sweep()
