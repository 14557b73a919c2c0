from decimal import Decimal
from typing import Optional

from livebid.enums.auction_status import AuctionStatus
from livebid.enums.event_kind import EventKind
from livebid.models.auction import Auction
from livebid.models.bid import Bid
from livebid.models.user import User
from livebid.services.realtime.broadcaster import EventBroadcaster


def _bidder_info(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": str(user.id),
        "name": user.full_name,
        "avatar": user.avatar,
    }


def _price(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def emit_bid_accepted(broadcaster: EventBroadcaster, auction: Auction, bid: Bid, bidder: User):
    broadcaster.publish(auction.id, EventKind.bid_accepted, {
        "bid": {
            "id": str(bid.id),
            "amount": _price(bid.amount),
            "created_at": bid.created_at.isoformat(),
            "bidder": _bidder_info(bidder),
        },
        "auction": {
            "id": str(auction.id),
            "current_price": _price(bid.amount),
            "status": auction.status.value,
        },
    })


def emit_potential_winner(broadcaster: EventBroadcaster, auction: Auction, bidder: User, amount: Decimal):
    broadcaster.publish(auction.id, EventKind.potential_winner, {
        "bidder": _bidder_info(bidder),
        "amount": _price(amount),
    })


def emit_auction_started(broadcaster: EventBroadcaster, auction: Auction):
    broadcaster.publish(auction.id, EventKind.auction_started, {
        "title": auction.title,
        "status": AuctionStatus.live.value,
        "start_time": auction.start_time.isoformat(),
        "end_time": auction.end_time.isoformat(),
        "current_price": _price(auction.current_price),
    })


def emit_auction_ended(broadcaster: EventBroadcaster, auction: Auction, winning_bid: Optional[Bid], winner: Optional[User]):
    broadcaster.publish(auction.id, EventKind.auction_ended, {
        "title": auction.title,
        "status": AuctionStatus.ended.value,
        "end_time": auction.end_time.isoformat(),
        "winning_bid": {
            "amount": _price(winning_bid.amount),
            "bidder": _bidder_info(winner),
        } if winning_bid else None,
        "current_price": _price(auction.current_price),
    })


def emit_status_changed(
    broadcaster: EventBroadcaster,
    auction: Auction,
    status: AuctionStatus,
    winner: Optional[User] = None,
):
    broadcaster.publish(auction.id, EventKind.status_changed, {
        "status": status.value,
        "winner": _bidder_info(winner),
    })
