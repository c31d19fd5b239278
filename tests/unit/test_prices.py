"""
test_prices.py - Unit tests for the price snapshot and PricePoller.

The HTTP path runs against an in-process aiohttp server so the real
client code (query string, status handling, JSON decoding) is exercised
without touching the network.
"""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from rigwatch.prices import (
    FALLBACK_SNAPSHOT,
    AssetPrice,
    PriceFetchError,
    PricePoller,
    PriceSnapshot,
)

pytestmark = pytest.mark.asyncio

API_BODY = {
    "bitcoin": {"usd": 50000.0, "usd_24h_change": 1.5},
    "ethereum": {"usd": 3000.0, "usd_24h_change": -0.5},
}


# ── Snapshot parsing ─────────────────────────────────────────────────────

class TestSnapshot:

    async def test_from_api(self):
        snap = PriceSnapshot.from_api(API_BODY)
        assert snap.bitcoin == AssetPrice(50000.0, 1.5)
        assert snap.ethereum == AssetPrice(3000.0, -0.5)
        assert snap.fetched_at is not None

    async def test_alternate_change_key(self):
        body = {
            "bitcoin": {"usd": 1.0, "usd_24hr_change": 4.2},
            "ethereum": {"usd": 2.0},
        }
        snap = PriceSnapshot.from_api(body)
        assert snap.bitcoin.usd_24h_change == 4.2
        assert snap.ethereum.usd_24h_change == 0.0

    async def test_missing_asset_rejected(self):
        with pytest.raises(PriceFetchError):
            PriceSnapshot.from_api({"bitcoin": {"usd": 1.0}})

    async def test_malformed_price_rejected(self):
        body = {"bitcoin": {"usd": "n/a"}, "ethereum": {"usd": 2.0}}
        with pytest.raises(PriceFetchError):
            PriceSnapshot.from_api(body)

    async def test_to_dict_shape(self):
        assert FALLBACK_SNAPSHOT.to_dict() == {
            "bitcoin": {"usd": 43287.50, "usd_24h_change": 2.45},
            "ethereum": {"usd": 2834.21, "usd_24h_change": -1.23},
        }

    async def test_usd_price_lookup(self):
        assert FALLBACK_SNAPSHOT.usd_price("BTC") == 43287.50
        assert FALLBACK_SNAPSHOT.usd_price("ETH") == 2834.21
        with pytest.raises(ValueError):
            FALLBACK_SNAPSHOT.usd_price("DOGE")


# ── Poll cycle ───────────────────────────────────────────────────────────

class TestPollOnce:

    async def test_initial_snapshot_is_fallback(self):
        poller = PricePoller()
        assert poller.snapshot == FALLBACK_SNAPSHOT

    async def test_failure_keeps_previous_snapshot(self, hub):
        poller = PricePoller(hub=hub)
        with patch.object(poller, "fetch_prices", AsyncMock(side_effect=PriceFetchError("HTTP 429"))):
            ok = await poller.poll_once()
        assert ok is False
        assert poller.snapshot == FALLBACK_SNAPSHOT
        assert poller.last_error == "HTTP 429"
        assert hub.events == []

    async def test_success_replaces_and_publishes(self, hub):
        poller = PricePoller(hub=hub)
        fresh = PriceSnapshot.from_api(API_BODY)
        with patch.object(poller, "fetch_prices", AsyncMock(return_value=fresh)):
            ok = await poller.poll_once()
        assert ok is True
        assert poller.snapshot is fresh
        assert poller.last_error is None
        assert hub.events == [("price_update", fresh.to_dict(), None)]

    async def test_failure_after_success_keeps_latest(self, hub):
        poller = PricePoller(hub=hub)
        fresh = PriceSnapshot.from_api(API_BODY)
        with patch.object(poller, "fetch_prices", AsyncMock(return_value=fresh)):
            await poller.poll_once()
        with patch.object(poller, "fetch_prices", AsyncMock(side_effect=PriceFetchError("timeout"))):
            await poller.poll_once()
        assert poller.snapshot is fresh
        assert len(hub.of_type("price_update")) == 1


# ── Background loop ──────────────────────────────────────────────────────

async def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


class TestPollLoop:

    async def test_first_fetch_is_immediate(self, hub):
        poller = PricePoller(hub=hub, interval_sec=60)
        fresh = PriceSnapshot.from_api(API_BODY)
        fetch = AsyncMock(return_value=fresh)
        with patch.object(poller, "fetch_prices", fetch):
            await poller.start()
            try:
                await _wait_until(lambda: fetch.await_count == 1, timeout=1.0)
            finally:
                await poller.stop()
        assert fetch.await_count == 1
        assert poller.snapshot is fresh
        assert hub.of_type("price_update") == [("price_update", fresh.to_dict(), None)]

    async def test_loop_survives_unexpected_error(self, hub):
        poller = PricePoller(hub=hub, interval_sec=0.01)
        fresh = PriceSnapshot.from_api(API_BODY)
        calls = []

        async def flaky_fetch():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("decoder blew up")
            if len(calls) == 2:
                raise PriceFetchError("HTTP 429")
            return fresh

        with patch.object(poller, "fetch_prices", flaky_fetch):
            await poller.start()
            try:
                await _wait_until(lambda: poller.snapshot is fresh)
            finally:
                await poller.stop()
        assert len(calls) >= 3
        assert poller.last_error is None

    async def test_stop_cancels_task(self):
        poller = PricePoller(interval_sec=60)
        with patch.object(poller, "fetch_prices", AsyncMock(return_value=FALLBACK_SNAPSHOT)):
            await poller.start()
            await poller.stop()
        assert poller._task is None


# ── HTTP fetch ───────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def price_api():
    state = {"status": 200, "body": API_BODY, "raw": None, "query": None}

    async def simple_price(request):
        state["query"] = dict(request.query)
        if state["raw"] is not None:
            return web.Response(text=state["raw"], status=state["status"])
        return web.json_response(state["body"], status=state["status"])

    app = web.Application()
    app.router.add_get("/api/v3/simple/price", simple_price)
    server = test_utils.TestServer(app)
    await server.start_server()
    state["url"] = str(server.make_url("/api/v3"))
    yield state
    await server.close()


class TestFetchPrices:

    async def test_fetch_parses_body(self, price_api):
        poller = PricePoller(api_url=price_api["url"])
        snap = await poller.fetch_prices()
        assert snap.bitcoin.usd == 50000.0
        assert price_api["query"] == {
            "ids": "bitcoin,ethereum",
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        }

    async def test_non_200_raises(self, price_api):
        price_api["status"] = 503
        poller = PricePoller(api_url=price_api["url"])
        with pytest.raises(PriceFetchError, match="HTTP 503"):
            await poller.fetch_prices()

    async def test_invalid_json_raises(self, price_api):
        price_api["raw"] = "<html>rate limited</html>"
        poller = PricePoller(api_url=price_api["url"])
        with pytest.raises(PriceFetchError):
            await poller.fetch_prices()

    async def test_unreachable_host_keeps_snapshot(self):
        poller = PricePoller(api_url="http://127.0.0.1:1/api/v3")
        assert await poller.poll_once() is False
        assert poller.snapshot == FALLBACK_SNAPSHOT
        assert poller.last_error
