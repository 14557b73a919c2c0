from .errors import (AuctionError, AuctionNotFoundError, AuctionPermissionError, InvalidAuctionError,
                     AuctionNotEndedError, AuctionLockTimeout, BidRejection, BidRejectedError,
                     BidConflictError)
from .service import AuctionService
