import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from httpx import AsyncClient, ASGITransport
from tortoise import Tortoise

from livebid.main import app
from livebid.core.database import DatabaseManager
from livebid.core.security.auth import create_access_token
from livebid.enums.auction_category import AuctionCategory
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction
from livebid.models.user import User
from livebid.services.auction.service import AuctionService


class FakeClock:
    """Controllable clock; `tick` moves time forward on every read"""

    def __init__(self, now: datetime, tick: timedelta = timedelta(0)):
        self.now = now
        self.tick = tick

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.tick
        return current

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingObserver:
    def __init__(self):
        self.messages = []

    async def send_json(self, data):
        self.messages.append(data)

    def types(self):
        return [m["type"] for m in self.messages]


@pytest.fixture(scope="function", autouse=True)
async def initialize_tests():
    """Fresh in-memory database for every test"""
    await DatabaseManager.init("sqlite://:memory:")
    yield
    await Tortoise._drop_databases()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc), tick=timedelta(milliseconds=1))


@pytest.fixture
async def service(clock: FakeClock) -> AsyncGenerator:
    auction_service = AuctionService.build(clock=clock, sweep_interval=3600, lock_timeout=5.0)
    app.state.auction_service = auction_service
    yield auction_service
    await auction_service.scheduler.stop()
    await auction_service.broadcaster.drain()


@pytest.fixture
async def client(service: AuctionService) -> AsyncGenerator:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seller() -> User:
    return await User.create(email="seller@example.com", full_name="Sam Seller")


@pytest.fixture
async def bidder_a() -> User:
    return await User.create(email="alice@example.com", full_name="Alice")


@pytest.fixture
async def bidder_b() -> User:
    return await User.create(email="bob@example.com", full_name="Bob")


@pytest.fixture
async def bidder_c() -> User:
    return await User.create(email="carol@example.com", full_name="Carol")


@pytest.fixture
async def admin() -> User:
    return await User.create(email="admin@example.com", full_name="Admin", is_admin=True)


def token_for(user: User) -> dict:
    token = create_access_token(user_id=user.id)["access_token"]
    return {"Authorization": f"Bearer {token}"}


async def make_auction(
    seller: User,
    now: datetime,
    start_in: timedelta = timedelta(0),
    end_in: timedelta = timedelta(minutes=10),
    starting_price: str = "100.00",
    status: Optional[AuctionStatus] = None,
) -> Auction:
    """Insert an auction row directly, bypassing creation checks"""
    start_time = now + start_in
    end_time = now + end_in
    if status is None:
        status = AuctionStatus.live if start_time <= now else AuctionStatus.upcoming
    return await Auction.create(
        title="Vintage camera",
        description="Rangefinder in working order",
        category=AuctionCategory.collectibles,
        starting_price=Decimal(starting_price),
        current_price=Decimal(starting_price),
        start_time=start_time,
        end_time=end_time,
        status=status,
        seller=seller,
    )
