from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from loguru import logger
from tortoise.backends.base.client import BaseDBAsyncClient

from livebid.core.clock import as_utc
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction
from livebid.models.bid import Bid


@dataclass
class Resolution:
    auction_id: UUID
    winner_id: Optional[UUID]
    final_price: Decimal
    winning_bid: Optional[Bid]


def select_winning_bid(bids: Iterable[Bid]) -> Optional[Bid]:
    """Highest amount wins; among equal amounts the earliest bid wins"""
    best = None
    for bid in bids:
        if best is None:
            best = bid
            continue
        if bid.amount > best.amount:
            best = bid
        elif bid.amount == best.amount and as_utc(bid.created_at) < as_utc(best.created_at):
            best = bid
    return best


class WinnerResolver:
    async def find_winning_bid(self, auction_id: UUID, connection: BaseDBAsyncClient) -> Optional[Bid]:
        # Compared in Python: SQLite keeps decimals as text and would order them lexically
        bids = await Bid.filter(auction_id=auction_id).using_db(connection)
        return select_winning_bid(bids)

    async def resolve_in_transaction(self, auction: Auction, connection: BaseDBAsyncClient) -> Optional[Resolution]:
        """
        Pick the winner and write it together with the ended status.

        Must run inside the transaction that holds the auction row lock. The
        update is guarded on status=live, so when another worker already ended
        the auction nothing is written and None is returned.
        """
        winning_bid = await self.find_winning_bid(auction.id, connection)
        winner_id = winning_bid.bidder_id if winning_bid else None
        final_price = winning_bid.amount if winning_bid else auction.current_price

        updated = await Auction.filter(id=auction.id, status=AuctionStatus.live).using_db(connection).update(
            status=AuctionStatus.ended,
            winner_id=winner_id,
            current_price=final_price,
        )
        if not updated:
            logger.debug(f"Auction {auction.id} was already resolved")
            return None

        auction.status = AuctionStatus.ended
        auction.winner_id = winner_id
        auction.current_price = final_price
        return Resolution(
            auction_id=auction.id,
            winner_id=winner_id,
            final_price=final_price,
            winning_bid=winning_bid,
        )
