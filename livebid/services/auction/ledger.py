from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional
from uuid import UUID

from loguru import logger
from tortoise.exceptions import IntegrityError, OperationalError
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from livebid.core.clock import as_utc, utcnow
from livebid.core.config import settings
from livebid.enums.auction_status import AuctionStatus
from livebid.enums.rejection_reason import RejectionReason
from livebid.models.auction import Auction
from livebid.models.bid import Bid
from livebid.models.favorite import Favorite
from livebid.models.user import User
from livebid.schemas.auction import AuctionCreate, AuctionSnapshot, AuctionStats, AuctionUpdate
from livebid.services.auction.errors import (
    AuctionLockTimeout,
    AuctionNotFoundError,
    AuctionPermissionError,
    BidConflictError,
    BidRejectedError,
    InvalidAuctionError,
)
from livebid.services.auction.locks import AuctionLockRegistry, lock_auction_row
from livebid.services.auction.validator import normalize_amount, validate_bid


@dataclass
class CommittedBid:
    bid: Bid
    auction: Auction


class AuctionLedger:
    """
    Owns persisted auction, bid and favorite state.

    `connection_name` is the Tortoise connection every transaction is opened
    on; a connection is taken from its pool per transaction and released on
    commit or rollback.
    """

    def __init__(
        self,
        locks: AuctionLockRegistry,
        connection_name: str = "default",
        lock_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.locks = locks
        self.connection_name = connection_name
        self.lock_timeout = lock_timeout if lock_timeout is not None else settings.bid_lock_timeout
        self.clock = clock

    # --- reads -------------------------------------------------------------

    async def get_auction(self, auction_id: UUID) -> Auction:
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    async def get_snapshot(self, auction_id: UUID) -> Optional[AuctionSnapshot]:
        auction = await Auction.get_or_none(id=auction_id)
        if auction is None:
            return None
        return AuctionSnapshot.model_validate(auction)

    async def record_view(self, auction_id: UUID) -> AuctionSnapshot:
        updated = await Auction.filter(id=auction_id).update(views=F("views") + 1)
        if not updated:
            raise AuctionNotFoundError(auction_id)
        return await self.get_snapshot(auction_id)

    async def list_bids(self, auction_id: UUID) -> List[Bid]:
        await self.get_auction(auction_id)
        bids = await Bid.filter(auction_id=auction_id)
        return sorted(bids, key=lambda bid: (-bid.amount, as_utc(bid.created_at)))

    async def list_user_bids(self, user_id: UUID) -> List[Bid]:
        return await Bid.filter(bidder_id=user_id).order_by("-created_at")

    async def get_auction_stats(self, auction_id: UUID) -> AuctionStats:
        await self.get_auction(auction_id)
        rows = await Bid.filter(auction_id=auction_id).values_list("amount", "bidder_id")
        amounts = [Decimal(amount) for amount, _ in rows]
        average = None
        if amounts:
            average = (sum(amounts) / len(amounts)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return AuctionStats(
            auction_id=auction_id,
            total_bids=len(rows),
            unique_bidders=len({bidder_id for _, bidder_id in rows}),
            highest_bid=max(amounts) if amounts else None,
            lowest_bid=min(amounts) if amounts else None,
            average_bid=average,
        )

    # --- auction writes ----------------------------------------------------

    async def create_auction(self, seller_id: UUID, data: AuctionCreate) -> Auction:
        now = self.clock()
        start_time = as_utc(data.start_time)
        end_time = as_utc(data.end_time)
        if end_time <= start_time:
            raise InvalidAuctionError("End time must be after start time")
        if end_time <= now:
            raise InvalidAuctionError("End time must be in the future")

        auction = await Auction.create(
            title=data.title,
            description=data.description,
            category=data.category,
            image=data.image,
            starting_price=data.starting_price,
            current_price=data.starting_price,
            start_time=start_time,
            end_time=end_time,
            status=AuctionStatus.live if start_time <= now else AuctionStatus.upcoming,
            seller_id=seller_id,
        )
        logger.info(f"Created auction {auction.id} ({auction.status.value}) for seller {seller_id}")
        return auction

    async def update_auction(self, auction_id: UUID, seller_id: UUID, data: AuctionUpdate) -> Auction:
        """
        Edit an auction. Descriptive fields can change until the auction ends;
        the starting price only while nobody has bid; the schedule only while
        the auction is still upcoming.
        """
        changes = data.model_dump(exclude_unset=True)

        async with self.locks.hold(auction_id, self.lock_timeout):
            async with in_transaction(self.connection_name) as connection:
                auction = await lock_auction_row(auction_id, connection, self.lock_timeout)
                if auction is None:
                    raise AuctionNotFoundError(auction_id)
                if auction.seller_id != seller_id:
                    raise AuctionPermissionError("Unauthorized to update this auction")
                if auction.status == AuctionStatus.ended:
                    raise InvalidAuctionError("An ended auction cannot be edited")

                if "starting_price" in changes:
                    if await Bid.filter(auction_id=auction_id).using_db(connection).exists():
                        raise InvalidAuctionError("Starting price cannot change after bidding has started")
                    auction.starting_price = changes["starting_price"]
                    auction.current_price = changes["starting_price"]

                if "start_time" in changes or "end_time" in changes:
                    if auction.status != AuctionStatus.upcoming:
                        raise InvalidAuctionError("Schedule can only change before the auction starts")
                    start_time = as_utc(changes.get("start_time") or auction.start_time)
                    end_time = as_utc(changes.get("end_time") or auction.end_time)
                    if end_time <= start_time:
                        raise InvalidAuctionError("End time must be after start time")
                    if end_time <= self.clock():
                        raise InvalidAuctionError("End time must be in the future")
                    auction.start_time = start_time
                    auction.end_time = end_time

                for field in ("title", "description", "category", "image"):
                    if field in changes:
                        setattr(auction, field, changes[field])

                await auction.save(using_db=connection)

        return auction

    async def delete_auction(self, auction_id: UUID, actor: User) -> AuctionSnapshot:
        async with self.locks.hold(auction_id, self.lock_timeout):
            async with in_transaction(self.connection_name) as connection:
                auction = await lock_auction_row(auction_id, connection, self.lock_timeout)
                if auction is None:
                    raise AuctionNotFoundError(auction_id)
                if auction.seller_id != actor.id and not actor.is_admin:
                    raise AuctionPermissionError("Unauthorized to delete this auction")
                snapshot = AuctionSnapshot.model_validate(auction)
                await auction.delete(using_db=connection)

        self.locks.discard(auction_id)
        logger.info(f"Deleted auction {auction_id} by {actor.id}")
        return snapshot

    # --- bid commit path ---------------------------------------------------

    async def place_bid(self, auction_id: UUID, bidder_id: UUID, amount) -> CommittedBid:
        """
        Validate and commit a bid as one atomic unit.

        The caller-visible snapshot is only used for a cheap early rejection;
        the decision that counts is re-made against the row re-read under the
        auction lock, with the clock read after the lock is held. A bid that
        passed the early check but lost the race to a concurrent higher bid is
        reported as a retryable conflict carrying the new price.
        """
        snapshot = await self.get_snapshot(auction_id)
        rejection = validate_bid(snapshot, bidder_id, amount, self.clock())
        if rejection is not None:
            logger.debug(f"Bid on {auction_id} by {bidder_id} rejected: {rejection.reason.value}")
            raise BidRejectedError(rejection)

        value = normalize_amount(amount)
        try:
            async with self.locks.hold(auction_id, self.lock_timeout):
                async with in_transaction(self.connection_name) as connection:
                    auction = await lock_auction_row(auction_id, connection, self.lock_timeout)
                    now = self.clock()
                    fresh = AuctionSnapshot.model_validate(auction) if auction else None
                    rejection = validate_bid(fresh, bidder_id, value, now)
                    if rejection is not None:
                        logger.debug(
                            f"Bid on {auction_id} by {bidder_id} rejected under lock: {rejection.reason.value}"
                        )
                        if rejection.reason == RejectionReason.too_low:
                            raise BidConflictError(
                                f"Another bid was placed first, bid must be higher than {rejection.current_price}",
                                rejection.current_price,
                            )
                        raise BidRejectedError(rejection)

                    bid = await Bid.create(
                        auction_id=auction_id,
                        bidder_id=bidder_id,
                        amount=value,
                        created_at=now,
                        using_db=connection,
                    )
                    await Auction.filter(id=auction_id).using_db(connection).update(
                        current_price=value,
                        last_bid_at=now,
                    )
                    auction.current_price = value
                    auction.last_bid_at = now
        except AuctionLockTimeout as e:
            raise BidConflictError(str(e), snapshot.current_price) from e
        except OperationalError as e:
            if "lock" not in str(e).lower():
                raise
            raise BidConflictError(
                f"Auction {auction_id} is busy, please retry", snapshot.current_price
            ) from e

        logger.info(f"Bid {bid.id} committed on auction {auction_id}: {value} by {bidder_id}")
        return CommittedBid(bid=bid, auction=auction)

    # --- favorites ---------------------------------------------------------

    async def toggle_favorite(self, user_id: UUID, auction_id: UUID) -> bool:
        """Returns True when the auction was added, False when it was removed"""
        await self.get_auction(auction_id)
        deleted = await Favorite.filter(user_id=user_id, auction_id=auction_id).delete()
        if deleted:
            return False
        try:
            await Favorite.create(user_id=user_id, auction_id=auction_id)
        except IntegrityError:
            logger.warning(f"Favorite ({user_id}, {auction_id}) was added concurrently")
        return True

    async def list_favorites(self, user_id: UUID) -> List[Auction]:
        favorites = await Favorite.filter(user_id=user_id).order_by("-created_at").prefetch_related("auction")
        return [favorite.auction for favorite in favorites]
