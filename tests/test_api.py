import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from auction_signal import AuctionSignalAdapter
from auction_signal.api import create_app
from auction_signal.dispatch import HttpSender, VendorDispatcher
from auction_signal.payload import PageEnvironment

from .helpers import RecordingHandler


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def sender(handler):
    return HttpSender(transport=httpx.MockTransport(handler), timeout=1.0)


@pytest.fixture
def adapter(sender):
    adapter = AuctionSignalAdapter(
        environment=PageEnvironment(domain="news.example"),
        dispatcher=VendorDispatcher(sender),
    )
    adapter.enable(
        {
            "vendors": [
                {"name": "raw", "endpoint": "https://raw.example/t"},
                {"name": "idx", "endpoint": "https://idx.example/t", "dataMode": "index"},
            ]
        }
    )
    return adapter


@pytest.fixture
async def client(adapter):
    app = create_app(adapter)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "enabled": True, "active_auctions": 0}


@pytest.mark.anyio
async def test_events_batch_runs_auction(client: AsyncClient, sender: HttpSender, handler: RecordingHandler):
    events = [
        {"eventType": "auctionInit", "args": {"auctionId": "A1", "adUnits": [{}, {}], "timestamp": 100}},
        {"eventType": "bidRequested", "args": {"auctionId": "A1", "bidderCode": "ix", "bids": [{}, {}]}},
        {"eventType": "bidResponse", "args": {"auctionId": "A1", "cpm": 4.0}},
    ]
    resp = await client.post("/events", json=events)
    assert resp.status_code == 200
    assert resp.json() == {"accepted": 3, "active_auctions": 1}

    resp = await client.post(
        "/events", json={"eventType": "auctionEnd", "args": {"auctionId": "A1", "auctionEnd": 400}}
    )
    assert resp.json() == {"accepted": 1, "active_auctions": 0}

    await sender.aclose()
    bodies = handler.bodies_by_host()
    assert bodies["raw.example"]["auctionDuration"] == 300
    assert bodies["raw.example"]["fillRate"] == 0.5
    assert "bidderList" not in bodies["idx.example"]


@pytest.mark.anyio
async def test_unknown_auction_events_are_accepted(client: AsyncClient):
    resp = await client.post("/events", json=[{"eventType": "noBid", "args": {"auctionId": "ghost"}}])
    assert resp.status_code == 200
    assert resp.json()["active_auctions"] == 0


@pytest.mark.anyio
async def test_invalid_envelope_rejected(client: AsyncClient):
    resp = await client.post("/events", json={"args": {}})
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_replace_global_ortb2(client: AsyncClient, adapter: AuctionSignalAdapter):
    resp = await client.put("/ortb2", json={"site": {"content": {"language": "en"}}})
    assert resp.status_code == 200
    assert adapter.global_ortb2 == {"site": {"content": {"language": "en"}}}


@pytest.mark.anyio
async def test_events_rejected_when_disabled():
    app = create_app(AuctionSignalAdapter())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        resp = await client.post("/events", json={"eventType": "noBid", "args": {"auctionId": "A"}})
        assert resp.status_code == 503
        health = await client.get("/health")
        assert health.json()["enabled"] is False
