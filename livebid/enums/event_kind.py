from enum import Enum


class EventKind(str, Enum):
    bid_accepted = "bid_accepted"
    auction_started = "auction_started"
    auction_ended = "auction_ended"
    status_changed = "status_changed"
    potential_winner = "potential_winner"
