from enum import Enum


class ActivityType(str, Enum):
    auction_created = "auction_created"
    auction_deleted = "auction_deleted"
    auction_started = "auction_started"
    auction_ended = "auction_ended"
    bid_placed = "bid_placed"
