from uuid import UUID
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from livebid.core.clock import as_utc
from livebid.enums.auction_status import AuctionStatus
from livebid.enums.auction_category import AuctionCategory


class AuctionCreate(BaseModel):
    """Schema for creating an auction"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    category: AuctionCategory
    image: Optional[str] = Field(None, max_length=512)
    starting_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def check_times(self):
        if as_utc(self.end_time) <= as_utc(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class AuctionUpdate(BaseModel):
    """Schema for editing an auction (seller only)"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[AuctionCategory] = None
    image: Optional[str] = Field(None, max_length=512)
    starting_price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("title", "description", "category", "starting_price", "start_time", "end_time")
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to leave it unchanged; only the image can be cleared
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class AuctionSnapshot(BaseModel):
    """Typed view of an auction row, validated when it leaves the ledger"""
    id: UUID
    title: str
    description: str
    category: AuctionCategory
    image: Optional[str]
    starting_price: Decimal
    current_price: Decimal
    start_time: datetime
    end_time: datetime
    status: AuctionStatus
    seller_id: UUID
    winner_id: Optional[UUID]
    views: int
    last_bid_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


class AuctionResponse(AuctionSnapshot):
    """Schema for auction response"""

    @field_serializer("id", "seller_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("winner_id")
    def serialize_winner(self, v: Optional[UUID], _info):
        return str(v) if v else None

    @field_serializer("starting_price", "current_price")
    def serialize_amount(self, v: Decimal, _info):
        return float(v)


class AuctionStats(BaseModel):
    auction_id: UUID
    total_bids: int
    unique_bidders: int
    highest_bid: Optional[Decimal]
    lowest_bid: Optional[Decimal]
    average_bid: Optional[Decimal]

    @field_serializer("highest_bid", "lowest_bid", "average_bid")
    def serialize_amount(self, v: Optional[Decimal], _info):
        return float(v) if v is not None else None


class FavoriteToggleResponse(BaseModel):
    auction_id: UUID
    added: bool
