from enum import Enum


class AuctionStatus(str, Enum):
    upcoming = "upcoming"
    live = "live"
    ended = "ended"
