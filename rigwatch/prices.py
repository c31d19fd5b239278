"""
prices.py - Spot price feed poller.

Polls the CoinGecko simple-price endpoint for BTC and ETH on a fixed
interval, keeps the latest snapshot in memory and publishes every
successful refresh as a ``price_update`` event.

The poller is the only writer of the snapshot. Everything else (the
broadcast hub, the simulator, HTTP handlers) reads ``poller.snapshot``.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import aiohttp

if TYPE_CHECKING:
    from rigwatch.ws import BroadcastHub

logger = logging.getLogger("prices")

DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3"
DEFAULT_POLL_INTERVAL = 30  # seconds
REQUEST_TIMEOUT = 10  # seconds

PRICE_QUERY = {
    "ids": "bitcoin,ethereum",
    "vs_currencies": "usd",
    "include_24hr_change": "true",
}

# cryptocurrency ticker -> CoinGecko asset id
ASSET_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
}


class PriceFetchError(Exception):
    """Raised when the upstream price API cannot produce a usable snapshot."""


@dataclass(frozen=True)
class AssetPrice:
    usd: float
    usd_24h_change: float = 0.0

    def to_dict(self) -> dict:
        return {"usd": self.usd, "usd_24h_change": self.usd_24h_change}


@dataclass(frozen=True)
class PriceSnapshot:
    bitcoin: AssetPrice
    ethereum: AssetPrice
    fetched_at: Optional[float] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {
            "bitcoin": self.bitcoin.to_dict(),
            "ethereum": self.ethereum.to_dict(),
        }

    def usd_price(self, cryptocurrency: str) -> float:
        """USD spot price for a rig ticker (BTC/ETH)."""
        asset_id = ASSET_IDS.get(cryptocurrency)
        if asset_id is None:
            raise ValueError(f"Unsupported cryptocurrency: {cryptocurrency}")
        return getattr(self, asset_id).usd

    @classmethod
    def from_api(cls, payload: dict) -> "PriceSnapshot":
        """Build a snapshot from a /simple/price response body."""
        assets = {}
        for asset_id in ("bitcoin", "ethereum"):
            entry = payload.get(asset_id) if isinstance(payload, dict) else None
            if not isinstance(entry, dict) or entry.get("usd") is None:
                raise PriceFetchError(f"Response missing {asset_id}.usd")
            change = entry.get("usd_24h_change")
            if change is None:
                change = entry.get("usd_24hr_change")
            try:
                assets[asset_id] = AssetPrice(
                    usd=float(entry["usd"]),
                    usd_24h_change=float(change or 0.0),
                )
            except (TypeError, ValueError) as e:
                raise PriceFetchError(f"Malformed {asset_id} price: {e}")
        return cls(bitcoin=assets["bitcoin"], ethereum=assets["ethereum"], fetched_at=time.time())


# Served until the first successful fetch completes
FALLBACK_SNAPSHOT = PriceSnapshot(
    bitcoin=AssetPrice(usd=43287.50, usd_24h_change=2.45),
    ethereum=AssetPrice(usd=2834.21, usd_24h_change=-1.23),
)


class PricePoller:
    """Owns the latest PriceSnapshot and refreshes it on a timer."""

    def __init__(
        self,
        hub: Optional["BroadcastHub"] = None,
        api_url: str = DEFAULT_PRICE_API_URL,
        interval_sec: float = DEFAULT_POLL_INTERVAL,
    ):
        self._hub = hub
        self.api_url = api_url.rstrip("/")
        self.interval_sec = interval_sec
        self._snapshot: PriceSnapshot = FALLBACK_SNAPSHOT
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None

    @property
    def snapshot(self) -> PriceSnapshot:
        return self._snapshot

    async def start(self):
        """Start the background poll task. The first fetch runs immediately."""
        self._task = asyncio.create_task(self._run())
        logger.info("Price poller started (interval: %ss, url: %s)", self.interval_sec, self.api_url)

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Price poller stopped")

    async def _run(self):
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in price poll tick")
            try:
                await asyncio.sleep(self.interval_sec)
            except asyncio.CancelledError:
                break

    async def poll_once(self) -> bool:
        """Fetch, replace and publish. Returns False (snapshot kept) on upstream failure."""
        try:
            snapshot = await self.fetch_prices()
        except PriceFetchError as e:
            self.last_error = str(e)
            logger.warning("Price fetch failed, keeping previous snapshot: %s", e)
            return False

        self._snapshot = snapshot
        self.last_error = None
        logger.debug(
            "Prices updated: BTC=%.2f ETH=%.2f",
            snapshot.bitcoin.usd, snapshot.ethereum.usd,
        )
        if self._hub is not None:
            await self._hub.publish("price_update", snapshot.to_dict())
        return True

    async def fetch_prices(self) -> PriceSnapshot:
        url = f"{self.api_url}/simple/price"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    params=PRICE_QUERY,
                    timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
                ) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise PriceFetchError(f"HTTP {response.status}: {body[:200]}")
                    payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PriceFetchError(f"Request error: {e!r}")
        except ValueError as e:
            raise PriceFetchError(f"Invalid JSON body: {e}")
        return PriceSnapshot.from_api(payload)
