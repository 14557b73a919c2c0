from .auctions import router as auctions_router
from .bids import router as bids_router
from .admin import router as admin_router
from .websocket import router as websocket_router
