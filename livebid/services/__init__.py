from .activity_service import ActivityService
from .auction import AuctionService
