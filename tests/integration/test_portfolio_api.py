"""
test_portfolio_api.py - Integration tests for /api/portfolio and
/api/transactions, including balances credited by the simulator.
"""

import itertools

import pytest

pytestmark = pytest.mark.asyncio


class _AlternatingRolls:
    """Every reward roll succeeds; reward sizes cycle through 0.25, 0.5, 0.75."""

    def __init__(self):
        self._values = itertools.cycle([0.9, 0.25, 0.9, 0.5, 0.9, 0.75])

    def random(self):
        return next(self._values)


class TestBalances:

    async def test_set_and_list(self, client, alice):
        resp = client.post("/api/portfolio", json={"cryptocurrency": "BTC", "amount": 0.5}, headers=alice)
        assert resp.status_code == 200
        assert resp.json()["amount"] == 0.5

        client.post("/api/portfolio", json={"cryptocurrency": "BTC", "amount": 0.75}, headers=alice)
        balances = client.get("/api/portfolio", headers=alice).json()
        assert len(balances) == 1
        assert balances[0]["amount"] == 0.75

    async def test_negative_amount(self, client, alice):
        resp = client.post("/api/portfolio", json={"cryptocurrency": "ETH", "amount": -1}, headers=alice)
        assert resp.status_code == 400
        assert client.get("/api/portfolio", headers=alice).json() == []

    async def test_balances_are_private(self, client, alice, bob):
        client.post("/api/portfolio", json={"cryptocurrency": "BTC", "amount": 1.0}, headers=alice)
        assert client.get("/api/portfolio", headers=bob).json() == []


class TestTransactions:

    async def test_simulated_rewards_visible(self, client, alice, server):
        rig = client.post("/api/mining-rigs", json={
            "name": "Rig A", "model": "S19", "cryptocurrency": "BTC",
            "hashRate": 100, "hashRateUnit": "TH/s", "powerConsumption": 3250,
        }, headers=alice).json()

        server.simulator._rng = _AlternatingRolls()
        for _ in range(4):
            await server.simulator.simulate_owner("alice")

        txs = client.get("/api/transactions?limit=100", headers=alice).json()
        total = sum(t["amount"] for t in txs)
        assert len(txs) == 4
        assert all(t["rigId"] == rig["id"] and t["type"] == "mining_reward" for t in txs)
        balances = client.get("/api/portfolio", headers=alice).json()
        assert len(balances) == 1
        assert balances[0]["amount"] == pytest.approx(total)

    async def test_default_limit(self, client, alice, server):
        for _ in range(12):
            await server.storage.transactions.record_mining_reward("alice", "r1", "ETH", 0.0001, 0.28)
        assert len(client.get("/api/transactions", headers=alice).json()) == 10
        assert len(client.get("/api/transactions?limit=3", headers=alice).json()) == 3

    async def test_requires_auth(self, client):
        assert client.get("/api/transactions").status_code == 401
