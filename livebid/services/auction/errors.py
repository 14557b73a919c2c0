from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from livebid.enums.rejection_reason import RejectionReason


@dataclass(frozen=True)
class BidRejection:
    reason: RejectionReason
    message: str
    current_price: Optional[Decimal] = None

    @property
    def retryable(self) -> bool:
        return self.reason == RejectionReason.conflict


class AuctionError(Exception):
    """Base class for errors raised by the auction core"""


class AuctionNotFoundError(AuctionError):
    def __init__(self, auction_id):
        super().__init__(f"Auction {auction_id} not found")
        self.auction_id = auction_id


class AuctionPermissionError(AuctionError):
    pass


class InvalidAuctionError(AuctionError):
    pass


class AuctionNotEndedError(AuctionError):
    pass


class BidRejectedError(AuctionError):
    """A bid was refused; callers branch on `reason`, never on the message"""

    def __init__(self, rejection: BidRejection):
        super().__init__(rejection.message)
        self.rejection = rejection

    @property
    def reason(self) -> RejectionReason:
        return self.rejection.reason

    @property
    def current_price(self) -> Optional[Decimal]:
        return self.rejection.current_price


class BidConflictError(BidRejectedError):
    """Retryable: the auction lock could not be taken in time or a concurrent bid won the race"""

    def __init__(self, message: str, current_price: Optional[Decimal] = None):
        super().__init__(BidRejection(RejectionReason.conflict, message, current_price))


class AuctionLockTimeout(AuctionError):
    """The per-auction lock could not be acquired within the configured timeout"""
