from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from livebid.api.dependencies import get_auction_service, get_current_user
from livebid.api.errors import auction_error_to_http
from livebid.models.user import User
from livebid.schemas.auction import AuctionResponse
from livebid.schemas.bid import BidCreate, BidPlacedResponse, BidRejectionResponse, BidResponse
from livebid.services.auction.errors import AuctionError
from livebid.services.auction.service import AuctionService

router = APIRouter()


@router.post(
    "/",
    response_model=BidPlacedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": BidRejectionResponse},
        404: {"model": BidRejectionResponse},
        409: {"model": BidRejectionResponse},
    },
)
async def place_bid(
    bid_in: BidCreate,
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    """
    Place a bid for the current user.

    On success returns the committed bid and the updated auction. A rejected
    bid answers with `reason`, a readable `message` and the `current_price`
    so the client can retry with a corrected amount:

    - 400: not_started, already_ended, self_bid, invalid_amount, too_low
    - 404: not_found
    - 409: conflict (retryable, another bid won the race or the auction is busy)
    """
    try:
        committed = await service.place_bid(current_user, bid_in.auction_id, bid_in.amount)
    except AuctionError as e:
        raise auction_error_to_http(e)

    return BidPlacedResponse(
        bid=BidResponse.model_validate(committed.bid),
        auction=AuctionResponse.model_validate(committed.auction),
    )


@router.get("/me", response_model=List[BidResponse])
async def get_my_bids(
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    bids = await service.ledger.list_user_bids(current_user.id)
    return [BidResponse.model_validate(b) for b in bids]


@router.get("/auction/{auction_id}", response_model=List[BidResponse])
async def get_auction_bids(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service),
):
    """Bids on an auction, highest first"""
    try:
        bids = await service.ledger.list_bids(auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return [BidResponse.model_validate(b) for b in bids]
