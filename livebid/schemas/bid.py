from uuid import UUID
from typing import Optional, Union
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, field_serializer

from livebid.enums.rejection_reason import RejectionReason
from livebid.schemas.auction import AuctionResponse


class BidCreate(BaseModel):
    """
    Schema for placing a bid.

    The amount is taken as a number or a string and checked by the bid
    validator, so a malformed amount is answered as `invalid_amount` with the
    current price instead of a schema error.
    """
    auction_id: UUID
    amount: Union[Decimal, str]


class BidResponse(BaseModel):
    id: UUID
    auction_id: UUID
    bidder_id: UUID
    amount: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "auction_id", "bidder_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("amount")
    def serialize_amount(self, v: Decimal, _info):
        return float(v)


class BidPlacedResponse(BaseModel):
    bid: BidResponse
    auction: AuctionResponse


class BidRejectionResponse(BaseModel):
    reason: RejectionReason
    message: str
    current_price: Optional[float] = None
    retryable: bool = False
