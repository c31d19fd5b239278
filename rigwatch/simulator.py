"""
simulator.py - Simulated mining reward loop.

Every tick, for each owner that has rigs:
 - aggregates hash rate, daily earnings and power draw over active rigs
 - rolls a reward for each active rig (p = 0.3), recording a
   mining_reward transaction and crediting the owner's balance
 - publishes the aggregate as ``mining_update`` (and the balances as
   ``portfolio_update`` when something was minted)

Rewards are random and not real mining telemetry.
"""

import asyncio
import logging
import random
from collections import defaultdict
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from rigwatch.prices import PricePoller
    from rigwatch.storage import StorageManager
    from rigwatch.ws import BroadcastHub

logger = logging.getLogger("simulator")

DEFAULT_TICK_INTERVAL = 60  # seconds
REWARD_THRESHOLD = 0.7  # a rig mints when the roll is strictly above this
MAX_REWARD = 0.001  # coins per minted reward


def aggregate_stats(rigs: List[dict]) -> dict:
    active = [r for r in rigs if r["isActive"]]
    return {
        "totalHashRate": sum(r["hashRate"] for r in active),
        "activeMinerCount": len(active),
        "totalDailyEarnings": sum(r["dailyEarnings"] or 0.0 for r in active),
        "totalPowerConsumption": sum(r["powerConsumption"] for r in active),
    }


class MiningSimulator:
    """Periodic reward simulation, serialized per owner."""

    def __init__(
        self,
        storage: "StorageManager",
        prices: "PricePoller",
        hub: Optional["BroadcastHub"] = None,
        interval_sec: float = DEFAULT_TICK_INTERVAL,
        rng: Optional[random.Random] = None,
    ):
        self.storage = storage
        self.prices = prices
        self._hub = hub
        self.interval_sec = interval_sec
        self._rng = rng or random.Random()
        self._owner_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        self._task = asyncio.create_task(self._run())
        logger.info("Mining simulator started (interval: %ss)", self.interval_sec)

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Mining simulator stopped")

    async def _run(self):
        while True:
            try:
                await asyncio.sleep(self.interval_sec)
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in mining simulation tick")

    async def tick(self) -> int:
        """Simulate one round for every owner with rigs. Returns the number of owners processed."""
        owner_ids = await self.storage.rigs.list_owner_ids()
        processed = 0
        for owner_id in owner_ids:
            try:
                await self.simulate_owner(owner_id)
                processed += 1
            except Exception:
                logger.exception("Mining simulation failed for owner %s", owner_id)
        return processed

    async def simulate_owner(self, owner_id: str) -> dict:
        """Run one simulation round for ``owner_id`` and return the published aggregate."""
        async with self._owner_locks[owner_id]:
            rigs = await self.storage.rigs.list_for_owner(owner_id)
            stats = aggregate_stats(rigs)
            minted = []
            for rig in rigs:
                if not rig["isActive"]:
                    continue
                if self._rng.random() <= REWARD_THRESHOLD:
                    continue
                minted.append(await self._mint_reward(owner_id, rig))

            if self._hub is not None:
                await self._hub.publish("mining_update", stats, owner_id=owner_id)
                if minted:
                    balances = await self.storage.balances.list_for_owner(owner_id)
                    await self._hub.publish("portfolio_update", balances, owner_id=owner_id)
        return stats

    async def _mint_reward(self, owner_id: str, rig: dict) -> dict:
        amount = self._rng.random() * MAX_REWARD
        usd_value = amount * self.prices.snapshot.usd_price(rig["cryptocurrency"])
        tx = await self.storage.transactions.record_mining_reward(
            owner_id=owner_id,
            rig_id=rig["id"],
            cryptocurrency=rig["cryptocurrency"],
            amount=amount,
            usd_value=usd_value,
        )
        logger.debug(
            "Reward minted: owner=%s rig=%s %.8f %s ($%.4f)",
            owner_id, rig["id"], amount, rig["cryptocurrency"], usd_value,
        )
        return tx
