import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from conftest import make_auction
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction
from livebid.models.bid import Bid
from livebid.services.auction.errors import AuctionNotEndedError, AuctionNotFoundError, BidRejectedError
from livebid.services.auction.winner import select_winning_bid

T0 = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def fake_bid(amount: str, seconds: int):
    return SimpleNamespace(id=uuid4(), bidder_id=uuid4(), amount=Decimal(amount),
                           created_at=T0 + timedelta(seconds=seconds))


def test_highest_amount_wins():
    bids = [fake_bid("120.00", 0), fake_bid("300.00", 5), fake_bid("250.00", 10)]
    assert select_winning_bid(bids).amount == Decimal("300.00")


def test_tie_goes_to_earliest_bid():
    early = fake_bid("200.00", 1)
    late = fake_bid("200.00", 2)
    assert select_winning_bid([late, early]) is early


def test_no_bids_no_winner():
    assert select_winning_bid([]) is None


@pytest.mark.asyncio
async def test_end_records_highest_bidder(service, clock, seller, bidder_a, bidder_b, bidder_c):
    """Bids of 120, 300 and 250: the 300 bidder wins at 300"""
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=1))
    await service.ledger.place_bid(auction.id, bidder_a.id, Decimal("120.00"))
    await service.ledger.place_bid(auction.id, bidder_b.id, Decimal("300.00"))
    with pytest.raises(BidRejectedError):
        await service.ledger.place_bid(auction.id, bidder_c.id, Decimal("250.00"))
    clock.advance(minutes=2)

    await service.lifecycle.advance(auction.id)

    stored = await Auction.get(id=auction.id)
    assert stored.status == AuctionStatus.ended
    assert stored.winner_id == bidder_b.id
    assert stored.current_price == Decimal("300.00")


@pytest.mark.asyncio
async def test_tied_stored_bids_pick_earliest(service, clock, seller, bidder_a, bidder_b):
    """Equal amounts can only be inserted directly; the earlier one still wins"""
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=1))
    await Bid.create(auction=auction, bidder=bidder_b, amount=Decimal("200.00"),
                     created_at=clock.now - timedelta(seconds=10))
    await Bid.create(auction=auction, bidder=bidder_a, amount=Decimal("200.00"),
                     created_at=clock.now - timedelta(seconds=20))
    clock.advance(minutes=2)

    await service.lifecycle.advance(auction.id)

    assert (await Auction.get(id=auction.id)).winner_id == bidder_a.id


@pytest.mark.asyncio
async def test_zero_bid_end_keeps_starting_price(service, clock, seller):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=1),
                                 starting_price="80.00")
    clock.advance(minutes=2)

    transitions = await service.lifecycle.advance(auction.id)

    assert transitions[-1].resolution.winner_id is None
    stored = await Auction.get(id=auction.id)
    assert stored.status == AuctionStatus.ended
    assert stored.winner_id is None
    assert stored.current_price == Decimal("80.00")


@pytest.mark.asyncio
async def test_resolve_winner_is_idempotent(service, clock, seller, bidder_a):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=1))
    await service.ledger.place_bid(auction.id, bidder_a.id, Decimal("140.00"))
    clock.advance(minutes=2)

    first = await service.resolve_winner(auction.id)
    second = await service.resolve_winner(auction.id)

    assert first.winner_id == bidder_a.id
    assert second.winner_id == bidder_a.id
    assert second.current_price == Decimal("140.00")


@pytest.mark.asyncio
async def test_resolve_winner_before_end_is_refused(service, clock, seller):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=30))

    with pytest.raises(AuctionNotEndedError):
        await service.resolve_winner(auction.id)

    assert (await Auction.get(id=auction.id)).status == AuctionStatus.live


@pytest.mark.asyncio
async def test_resolve_winner_missing_auction(service):
    with pytest.raises(AuctionNotFoundError):
        await service.resolve_winner(uuid4())
