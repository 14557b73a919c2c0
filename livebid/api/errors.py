from fastapi import HTTPException, status

from livebid.enums.rejection_reason import RejectionReason
from livebid.schemas.bid import BidRejectionResponse
from livebid.services.auction.errors import (
    AuctionError,
    AuctionNotEndedError,
    AuctionNotFoundError,
    AuctionPermissionError,
    BidRejectedError,
    InvalidAuctionError,
)

REJECTION_STATUS = {
    RejectionReason.not_found: status.HTTP_404_NOT_FOUND,
    RejectionReason.conflict: status.HTTP_409_CONFLICT,
}


def bid_rejection_to_http(error: BidRejectedError) -> HTTPException:
    rejection = error.rejection
    body = BidRejectionResponse(
        reason=rejection.reason,
        message=rejection.message,
        current_price=float(rejection.current_price) if rejection.current_price is not None else None,
        retryable=rejection.retryable,
    )
    return HTTPException(
        status_code=REJECTION_STATUS.get(rejection.reason, status.HTTP_400_BAD_REQUEST),
        detail=body.model_dump(mode="json"),
    )


def auction_error_to_http(error: AuctionError) -> HTTPException:
    if isinstance(error, BidRejectedError):
        return bid_rejection_to_http(error)
    if isinstance(error, AuctionNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Auction not found")
    if isinstance(error, AuctionPermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, AuctionNotEndedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, InvalidAuctionError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
