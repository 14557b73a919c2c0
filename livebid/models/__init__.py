from .user import User
from .auction import Auction
from .bid import Bid
from .favorite import Favorite
from .activity_log import ActivityLog
