from .auction import (AuctionCreate, AuctionUpdate, AuctionSnapshot, AuctionResponse,
                      AuctionStats, FavoriteToggleResponse)
from .bid import BidCreate, BidResponse, BidPlacedResponse, BidRejectionResponse
from .event import AuctionEvent
