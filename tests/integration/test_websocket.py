"""
test_websocket.py - Integration tests for the /ws live update channel.

Tests the initial price snapshot, price/mining/portfolio broadcasts,
owner scoping, multiple clients and disconnection handling.
"""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
from starlette.websockets import WebSocketDisconnect

from rigwatch.prices import PriceSnapshot

pytestmark = pytest.mark.asyncio

FRESH_PRICES = {
    "bitcoin": {"usd": 61000.0, "usd_24h_change": 0.8},
    "ethereum": {"usd": 3100.0, "usd_24h_change": -2.0},
}


class _AlwaysMint:
    def random(self):
        return 0.9


async def _wait_for_subscribers(hub, count, timeout=2.0):
    """The hub registers a channel only after its snapshot frame has been sent."""
    deadline = time.monotonic() + timeout
    while hub.client_count != count:
        if time.monotonic() > deadline:
            raise AssertionError(f"expected {count} subscribers, have {hub.client_count}")
        await asyncio.sleep(0.01)


async def _make_rig(server, owner_id):
    return await server.rigs.create_rig(
        owner_id=owner_id, name="Rig", model="S19", cryptocurrency="BTC",
        hash_rate=100.0, hash_rate_unit="TH/s", power_consumption=3250.0,
    )


# ── Connection + Snapshot ─────────────────────────────────────────────────

class TestConnection:

    async def test_connect_receives_price_snapshot(self, server, client):
        with client.websocket_connect("/ws") as ws:
            msg = ws.receive_json()
            assert msg["type"] == "price_update"
            assert msg["data"] == server.prices.snapshot.to_dict()

    async def test_authenticated_connect(self, server, client, alice):
        with client.websocket_connect(f"/ws?api_key={alice['X-API-Key']}") as ws:
            assert ws.receive_json()["type"] == "price_update"
            await _wait_for_subscribers(server.hub, 1)
            assert list(server.hub._clients.values())[0][1] == "alice"

    async def test_token_connect(self, server, client, alice):
        token = server.auth.issue_jwt("alice")
        with client.websocket_connect(f"/ws?token={token}") as ws:
            ws.receive_json()
            await _wait_for_subscribers(server.hub, 1)
            assert list(server.hub._clients.values())[0][1] == "alice"

    async def test_bad_credentials_refused(self, server, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws?api_key=bogus"):
                pass
        assert exc_info.value.code == 1008
        assert server.hub.client_count == 0

    async def test_capacity_limit(self, server, client, monkeypatch):
        monkeypatch.setattr("rigwatch.ws.MAX_WS_CLIENTS", 1)
        with client.websocket_connect("/ws") as ws1:
            ws1.receive_json()
            await _wait_for_subscribers(server.hub, 1)
            with client.websocket_connect("/ws") as ws2:
                with pytest.raises(WebSocketDisconnect) as exc_info:
                    ws2.receive_json()
                assert exc_info.value.code == 1013
            assert server.hub.client_count == 1


# ── Broadcast events ─────────────────────────────────────────────────────

class TestBroadcastEvents:

    async def test_price_refresh_broadcast(self, server, client):
        fresh = PriceSnapshot.from_api(FRESH_PRICES)
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            await _wait_for_subscribers(server.hub, 1)
            with patch.object(server.prices, "fetch_prices", AsyncMock(return_value=fresh)):
                assert await server.prices.poll_once() is True
            msg = ws.receive_json()
            assert msg == {"type": "price_update", "data": FRESH_PRICES}

    async def test_mining_and_portfolio_updates(self, server, client, alice):
        await _make_rig(server, "alice")
        server.simulator._rng = _AlwaysMint()
        with client.websocket_connect(f"/ws?api_key={alice['X-API-Key']}") as ws:
            ws.receive_json()
            await _wait_for_subscribers(server.hub, 1)
            stats = await server.simulator.simulate_owner("alice")

            mining = ws.receive_json()
            assert mining["type"] == "mining_update"
            assert mining["data"] == stats
            assert mining["data"]["activeMinerCount"] == 1

            portfolio = ws.receive_json()
            assert portfolio["type"] == "portfolio_update"
            assert portfolio["data"][0]["cryptocurrency"] == "BTC"
            assert portfolio["data"][0]["amount"] == pytest.approx(0.9 * 0.001)

    async def test_owner_events_not_leaked(self, server, client, alice, bob):
        await _make_rig(server, "alice")
        with client.websocket_connect(f"/ws?api_key={bob['X-API-Key']}") as bob_ws:
            bob_ws.receive_json()
            with client.websocket_connect("/ws") as anon_ws:
                anon_ws.receive_json()
                await _wait_for_subscribers(server.hub, 2)

                delivered = await server.hub.publish("mining_update", {"activeMinerCount": 1}, owner_id="alice")
                assert delivered == 0

                await server.hub.publish("price_update", FRESH_PRICES)
                assert bob_ws.receive_json()["type"] == "price_update"
                assert anon_ws.receive_json()["type"] == "price_update"


# ── Multiple clients ──────────────────────────────────────────────────────

class TestMultipleClients:

    async def test_two_clients_receive_broadcast(self, server, client):
        with client.websocket_connect("/ws") as ws1:
            ws1.receive_json()
            with client.websocket_connect("/ws") as ws2:
                ws2.receive_json()
                await _wait_for_subscribers(server.hub, 2)
                assert await server.hub.publish("price_update", FRESH_PRICES) == 2
                assert ws1.receive_json()["data"] == FRESH_PRICES
                assert ws2.receive_json()["data"] == FRESH_PRICES


# ── Disconnection ─────────────────────────────────────────────────────────

class TestDisconnection:

    async def test_disconnect_cleans_up(self, server, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            await _wait_for_subscribers(server.hub, 1)
        assert server.hub.client_count == 0

    async def test_publish_after_disconnect(self, server, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
        assert await server.hub.publish("price_update", FRESH_PRICES) == 0


# ── Frame ordering ────────────────────────────────────────────────────────

class TestSnapshotOrdering:

    async def test_snapshot_precedes_registration(self, server):
        hub = server.hub
        frames = []

        class _RecordingSocket:
            async def accept(self):
                pass

            async def send_text(self, text):
                # the channel must not be visible to publish() yet
                frames.append((text, hub.client_count))

        sock = _RecordingSocket()
        assert await hub.connect(sock) is True
        assert len(frames) == 1
        assert '"price_update"' in frames[0][0]
        assert frames[0][1] == 0
        assert hub.client_count == 1
        hub.disconnect(sock)
