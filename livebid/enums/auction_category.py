from enum import Enum


class AuctionCategory(str, Enum):
    electronics = "Electronics"
    collectibles = "Collectibles"
    fashion = "Fashion"
    home = "Home"
    sports = "Sports"
    toys = "Toys"
    other = "Other"
