from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
from uuid import UUID

from livebid.api.dependencies import get_auction_service, get_current_user
from livebid.api.errors import auction_error_to_http
from livebid.models.user import User
from livebid.schemas.auction import (
    AuctionCreate,
    AuctionResponse,
    AuctionStats,
    AuctionUpdate,
    FavoriteToggleResponse,
)
from livebid.services.auction.errors import AuctionError
from livebid.services.auction.service import AuctionService

router = APIRouter()


@router.post("/", response_model=AuctionResponse, status_code=status.HTTP_201_CREATED)
async def create_auction(
    auction_in: AuctionCreate,
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    """
    Create an auction owned by the current user.

    Status starts as `live` when the start time has already passed and as
    `upcoming` otherwise; the scheduler is told about the auction right away.

    Raises:
        HTTPException:
            - 400 if the end time is not after the start time or is in the past.
    """
    try:
        auction = await service.create_auction(current_user, auction_in)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return AuctionResponse.model_validate(auction)


@router.get("/favorites", response_model=List[AuctionResponse])
async def get_favorite_auctions(
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    """Auctions starred by the current user, most recent first"""
    auctions = await service.ledger.list_favorites(current_user.id)
    return [AuctionResponse.model_validate(a) for a in auctions]


@router.get("/{auction_id}", response_model=AuctionResponse)
async def get_auction(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service),
):
    """Current snapshot of an auction; counts as a view"""
    try:
        snapshot = await service.view_auction(auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return AuctionResponse.model_validate(snapshot.model_dump())


@router.patch("/{auction_id}", response_model=AuctionResponse)
async def update_auction(
    auction_id: UUID,
    auction_in: AuctionUpdate,
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    """
    Edit an auction (seller only).

    Raises:
        HTTPException:
            - 403 if the caller is not the seller.
            - 400 if the change is not allowed in the auction's current state.
            - 404 if the auction does not exist.
    """
    try:
        auction = await service.update_auction(current_user, auction_id, auction_in)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return AuctionResponse.model_validate(auction)


@router.delete("/{auction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_auction(
    auction_id: UUID,
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    """Delete an auction with its bids and favorites (seller or admin)"""
    try:
        await service.delete_auction(current_user, auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return


@router.get("/{auction_id}/stats", response_model=AuctionStats)
async def get_auction_stats(
    auction_id: UUID,
    service: AuctionService = Depends(get_auction_service),
):
    try:
        return await service.ledger.get_auction_stats(auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)


@router.post("/{auction_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    auction_id: UUID,
    current_user: User = Depends(get_current_user),
    service: AuctionService = Depends(get_auction_service),
):
    try:
        added = await service.ledger.toggle_favorite(current_user.id, auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return FavoriteToggleResponse(auction_id=auction_id, added=added)
