from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

from livebid.core.clock import as_utc
from livebid.enums.auction_status import AuctionStatus
from livebid.enums.rejection_reason import RejectionReason
from livebid.schemas.auction import AuctionSnapshot
from livebid.services.auction.errors import BidRejection

PRICE_QUANTUM = Decimal("0.01")


def normalize_amount(amount: Union[Decimal, int, float, str, None]) -> Optional[Decimal]:
    """Return the amount as a finite positive Decimal with at most two places, or None"""
    if amount is None or isinstance(amount, bool):
        return None
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    if value != value.quantize(PRICE_QUANTUM):
        return None
    return value


def validate_bid(
    snapshot: Optional[AuctionSnapshot],
    bidder_id: UUID,
    amount,
    now: datetime,
) -> Optional[BidRejection]:
    """
    Decide whether a bid may be accepted against an auction snapshot.

    Returns None on acceptance, otherwise the first failing rejection in this
    order: not found, not started, already ended, self bid, invalid amount,
    too low. No side effects; acceptance only becomes final when the ledger
    commits it against a freshly locked row.
    """
    if snapshot is None:
        return BidRejection(RejectionReason.not_found, "Auction not found")

    now = as_utc(now)
    if now < as_utc(snapshot.start_time):
        return BidRejection(
            RejectionReason.not_started,
            "Cannot bid on an auction that hasn't started yet",
            snapshot.current_price,
        )

    if now > as_utc(snapshot.end_time) or snapshot.status == AuctionStatus.ended:
        return BidRejection(
            RejectionReason.already_ended,
            "Cannot bid on an auction that has already ended",
            snapshot.current_price,
        )

    if bidder_id == snapshot.seller_id:
        return BidRejection(
            RejectionReason.self_bid,
            "You cannot bid on your own auction",
            snapshot.current_price,
        )

    value = normalize_amount(amount)
    if value is None:
        return BidRejection(
            RejectionReason.invalid_amount,
            "Bid amount must be a positive number with at most two decimal places",
            snapshot.current_price,
        )

    if value <= snapshot.current_price:
        return BidRejection(
            RejectionReason.too_low,
            f"Bid must be higher than {snapshot.current_price}",
            snapshot.current_price,
        )

    return None
