import json
import pytest
from datetime import timedelta
from decimal import Decimal

from conftest import make_auction
from livebid.enums.activity_type import ActivityType
from livebid.models.activity_log import ActivityLog
from livebid.schemas.auction import AuctionCreate
from livebid.services.activity_service import ActivityService
from livebid.services.kafka.producer import KafkaProducer


class FakeMessage:
    def topic(self):
        return "auction.activity"

    def partition(self):
        return 0


class FakeConfluentProducer:
    """Stands in for confluent_kafka.Producer and delivers synchronously"""

    def __init__(self, fail=False):
        self.messages = []
        self.fail = fail

    def produce(self, topic, key=None, value=None, on_delivery=None):
        self.messages.append((topic, key, value))
        on_delivery("broker down" if self.fail else None, FakeMessage())

    def poll(self, timeout):
        return 0

    def flush(self, timeout):
        return 0


@pytest.mark.asyncio
async def test_activity_is_stored_and_mirrored(seller):
    fake = FakeConfluentProducer()
    producer = KafkaProducer(fake)
    activity = ActivityService(producer, topic="auction.activity")

    entry = await activity.log(ActivityType.bid_placed, user_id=seller.id,
                               auction_id=seller.id, amount=Decimal("12.50"))

    assert entry.details == {"auction_id": str(seller.id), "amount": "12.50"}
    assert await ActivityLog.filter(type=ActivityType.bid_placed).count() == 1

    topic, key, value = fake.messages[0]
    assert topic == "auction.activity"
    assert key == str(seller.id).encode()
    message = json.loads(value)
    assert message["type"] == "bid_placed"
    assert message["user_id"] == str(seller.id)
    assert producer.delivered == 1


@pytest.mark.asyncio
async def test_failed_delivery_is_counted_not_raised(seller):
    producer = KafkaProducer(FakeConfluentProducer(fail=True))
    activity = ActivityService(producer)

    entry = await activity.log(ActivityType.auction_created, user_id=seller.id)

    assert entry is not None
    assert producer.failed == 1
    assert producer.flush(1.0) == 0


@pytest.mark.asyncio
async def test_service_operations_write_activity(service, clock, seller, bidder_a):
    auction = await service.create_auction(seller, AuctionCreate(
        title="Guitar",
        category="Other",
        starting_price=Decimal("200.00"),
        start_time=clock.now - timedelta(minutes=1),
        end_time=clock.now + timedelta(hours=1),
    ))
    await service.place_bid(bidder_a, auction.id, Decimal("210.00"))
    await service.delete_auction(seller, auction.id)

    types = await ActivityLog.all().order_by("created_at").values_list("type", flat=True)
    assert {ActivityType(t) for t in types} == {
        ActivityType.auction_created, ActivityType.bid_placed, ActivityType.auction_deleted,
    }
    assert auction.id not in service.scheduler.timers


@pytest.mark.asyncio
async def test_activity_failure_does_not_break_bidding(service, clock, seller, bidder_a, monkeypatch):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-1))

    async def broken_create(*args, **kwargs):
        raise RuntimeError("activity table unavailable")

    monkeypatch.setattr(ActivityLog, "create", broken_create)

    committed = await service.place_bid(bidder_a, auction.id, Decimal("150.00"))

    assert committed.bid.amount == Decimal("150.00")
