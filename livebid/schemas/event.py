from uuid import UUID
from typing import Any
from datetime import datetime
from pydantic import BaseModel, Field, field_serializer

from livebid.core.clock import utcnow
from livebid.enums.event_kind import EventKind


class AuctionEvent(BaseModel):
    """Message pushed to observers of one auction"""
    type: EventKind
    auction_id: UUID
    data: dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=utcnow)

    @field_serializer("auction_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)
