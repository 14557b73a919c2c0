from fastapi import APIRouter, Depends
from uuid import UUID

from livebid.api.dependencies import admin_required, get_auction_service
from livebid.api.errors import auction_error_to_http
from livebid.models.user import User
from livebid.schemas.auction import AuctionResponse
from livebid.services.auction.errors import AuctionError
from livebid.services.auction.service import AuctionService

router = APIRouter()


@router.post("/auctions/{auction_id}/resolve", response_model=AuctionResponse)
async def resolve_auction_winner(
    auction_id: UUID,
    current_user: User = Depends(admin_required),
    service: AuctionService = Depends(get_auction_service),
):
    """
    Run winner resolution for an auction whose end time has passed.

    Goes through the same guarded end transition as the scheduler, so an
    auction that already ended keeps its recorded winner.
    """
    try:
        auction = await service.resolve_winner(auction_id)
    except AuctionError as e:
        raise auction_error_to_http(e)
    return AuctionResponse.model_validate(auction)


@router.post("/scheduler/sweep")
async def run_sweep(
    current_user: User = Depends(admin_required),
    service: AuctionService = Depends(get_auction_service),
):
    """Run one status sweep immediately"""
    result = await service.sweep()
    return {
        "started": result.started,
        "ended": result.ended,
        "failed": result.failed,
    }
