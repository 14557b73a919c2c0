import pytest
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

from conftest import make_auction, token_for
from livebid.enums.auction_status import AuctionStatus
from livebid.models.auction import Auction


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_create_auction(client, clock, seller, service):
    """Creating an auction returns it with its computed status and tracks it"""
    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "description": "Rangefinder",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": (clock.now - timedelta(minutes=1)).isoformat(),
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    }, headers=token_for(seller))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "live"
    assert data["current_price"] == 150.0
    assert data["seller_id"] == str(seller.id)
    assert data["winner_id"] is None
    assert data["id"] in {str(k) for k in service.scheduler.timers}


@pytest.mark.asyncio
async def test_create_auction_requires_auth(client, clock):
    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": clock.now.isoformat(),
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    })
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_create_auction_with_bad_schedule(client, clock, seller):
    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": (clock.now + timedelta(hours=2)).isoformat(),
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    }, headers=token_for(seller))
    assert response.status_code == 422

    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": (clock.now - timedelta(hours=2)).isoformat(),
        "end_time": (clock.now - timedelta(hours=1)).isoformat(),
    }, headers=token_for(seller))
    assert response.status_code == 400
    assert response.json()["detail"] == "End time must be in the future"


@pytest.mark.asyncio
async def test_get_auction_counts_views(client, clock, seller):
    auction = await make_auction(seller, clock.now)

    await client.get(f"/auctions/{auction.id}")
    response = await client.get(f"/auctions/{auction.id}")

    assert response.status_code == 200
    assert response.json()["views"] == 2
    assert response.json()["title"] == "Vintage camera"


@pytest.mark.asyncio
async def test_get_missing_auction(client):
    response = await client.get(f"/auctions/{uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_auction(client, clock, seller, bidder_a):
    auction = await make_auction(seller, clock.now, start_in=timedelta(hours=1), end_in=timedelta(hours=2))

    response = await client.patch(f"/auctions/{auction.id}", json={"title": "Leica M3"},
                                  headers=token_for(bidder_a))
    assert response.status_code == 403

    response = await client.patch(f"/auctions/{auction.id}", json={"title": "Leica M3", "starting_price": "90.00"},
                                  headers=token_for(seller))
    assert response.status_code == 200
    assert response.json()["title"] == "Leica M3"
    assert response.json()["current_price"] == 90.0


@pytest.mark.asyncio
async def test_update_live_schedule_refused(client, clock, seller):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-1))

    response = await client.patch(f"/auctions/{auction.id}", json={
        "end_time": (clock.now + timedelta(days=1)).isoformat(),
    }, headers=token_for(seller))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_auction(client, clock, seller, bidder_a, service):
    auction = await make_auction(seller, clock.now)

    response = await client.delete(f"/auctions/{auction.id}", headers=token_for(bidder_a))
    assert response.status_code == 403

    response = await client.delete(f"/auctions/{auction.id}", headers=token_for(seller))
    assert response.status_code == 204
    assert not await Auction.exists(id=auction.id)

    response = await client.delete(f"/auctions/{auction.id}", headers=token_for(seller))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_endpoint(client, clock, seller, bidder_a, service):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-1))
    await service.place_bid(bidder_a, auction.id, Decimal("120.00"))

    response = await client.get(f"/auctions/{auction.id}/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["total_bids"] == 1
    assert data["highest_bid"] == 120.0
    assert data["unique_bidders"] == 1


@pytest.mark.asyncio
async def test_favorites(client, clock, seller, bidder_a):
    auction = await make_auction(seller, clock.now)
    headers = token_for(bidder_a)

    response = await client.post(f"/auctions/{auction.id}/favorite", headers=headers)
    assert response.json() == {"auction_id": str(auction.id), "added": True}

    response = await client.get("/auctions/favorites", headers=headers)
    assert [a["id"] for a in response.json()] == [str(auction.id)]

    response = await client.post(f"/auctions/{auction.id}/favorite", headers=headers)
    assert response.json()["added"] is False


@pytest.mark.asyncio
async def test_admin_resolve(client, clock, seller, bidder_a, admin, service):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=-5), end_in=timedelta(minutes=1))
    await service.place_bid(bidder_a, auction.id, Decimal("175.00"))

    response = await client.post(f"/admin/auctions/{auction.id}/resolve", headers=token_for(seller))
    assert response.status_code == 403

    response = await client.post(f"/admin/auctions/{auction.id}/resolve", headers=token_for(admin))
    assert response.status_code == 409

    clock.advance(minutes=2)
    response = await client.post(f"/admin/auctions/{auction.id}/resolve", headers=token_for(admin))
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ended"
    assert data["winner_id"] == str(bidder_a.id)
    assert data["current_price"] == 175.0


@pytest.mark.asyncio
async def test_admin_sweep(client, clock, seller, admin):
    auction = await make_auction(seller, clock.now, start_in=timedelta(minutes=1), end_in=timedelta(hours=1))
    clock.advance(minutes=2)

    response = await client.post("/admin/scheduler/sweep", headers=token_for(admin))

    assert response.status_code == 200
    assert response.json() == {"started": 1, "ended": 0, "failed": 0}
    assert (await Auction.get(id=auction.id)).status == AuctionStatus.live


@pytest.mark.asyncio
async def test_create_auction_with_naive_start_and_aware_end(client, clock, seller):
    """A start without an offset is read as UTC instead of failing the comparison"""
    naive_start = (clock.now - timedelta(minutes=1)).replace(tzinfo=None)

    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": naive_start.isoformat(),
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    }, headers=token_for(seller))

    assert response.status_code == 201
    assert response.json()["status"] == "live"

    response = await client.post("/auctions/", json={
        "title": "Vintage camera",
        "category": "Collectibles",
        "starting_price": "150.00",
        "start_time": (clock.now + timedelta(hours=2)).replace(tzinfo=None).isoformat(),
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    }, headers=token_for(seller))

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["title", "description", "category", "starting_price", "end_time"])
async def test_update_rejects_null_for_required_fields(client, clock, seller, field):
    auction = await make_auction(seller, clock.now, start_in=timedelta(hours=1), end_in=timedelta(hours=2))

    response = await client.patch(f"/auctions/{auction.id}", json={field: None}, headers=token_for(seller))

    assert response.status_code == 422
    stored = await Auction.get(id=auction.id)
    assert stored.title == "Vintage camera"


@pytest.mark.asyncio
async def test_update_can_clear_image(client, clock, seller):
    auction = await make_auction(seller, clock.now, start_in=timedelta(hours=1), end_in=timedelta(hours=2))
    auction.image = "https://img.example.com/camera.jpg"
    await auction.save()

    response = await client.patch(f"/auctions/{auction.id}", json={"image": None}, headers=token_for(seller))

    assert response.status_code == 200
    assert response.json()["image"] is None
