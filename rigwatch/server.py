"""
server.py - Mining dashboard server entry point.

Single-process server combining:
 - SQLite persistent storage via StorageManager
 - Price feed poller (CoinGecko, every 30s)
 - Mining reward simulator (every 60s)
 - WebSocket broadcast hub (/ws)
 - REST API (FastAPI on uvicorn, port 8080)

Usage:
    python -m rigwatch.server [--api-port 8080] [--db-path data/rigwatch.db]
    rigwatch [--api-port 8080] [--db-path data/rigwatch.db]
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

try:
    from fastapi import FastAPI, Request
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse
    import uvicorn
except ImportError:
    print("ERROR: FastAPI and uvicorn are required. Install with:")
    print("  pip install fastapi uvicorn pydantic")
    sys.exit(1)

from rigwatch import __version__
from rigwatch.auth import DEFAULT_ADMIN_KEY, AuthService
from rigwatch.exchanges import ExchangeService
from rigwatch.payments import PaymentService
from rigwatch.portfolio import PortfolioService
from rigwatch.prices import DEFAULT_POLL_INTERVAL, DEFAULT_PRICE_API_URL, PricePoller
from rigwatch.rigs import RigService
from rigwatch.routers import register_all_routers
from rigwatch.simulator import DEFAULT_TICK_INTERVAL, MiningSimulator
from rigwatch.storage import StorageManager
from rigwatch.ws import BroadcastHub

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("server")


class DashboardServer:
    """Single-process dashboard server: storage, background loops, REST + WebSocket API."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        api_port: int = 8080,
        db_path: str = "data/rigwatch.db",
        price_api_url: str = DEFAULT_PRICE_API_URL,
        price_interval: float = DEFAULT_POLL_INTERVAL,
        mining_interval: float = DEFAULT_TICK_INTERVAL,
        jwt_secret: str = "",
        admin_key: str = DEFAULT_ADMIN_KEY,
        enable_background: bool = True,
    ):
        self.host = host
        self.api_port = api_port
        self.db_path = db_path
        self.price_api_url = price_api_url
        self.price_interval = price_interval
        self.mining_interval = mining_interval
        self._jwt_secret = jwt_secret
        self._admin_key = admin_key
        self._enable_background = enable_background

        # Storage + services are initialized async in initialize()
        self.storage: Optional[StorageManager] = None
        self.auth: Optional[AuthService] = None
        self.rigs: Optional[RigService] = None
        self.portfolio: Optional[PortfolioService] = None
        self.exchanges: Optional[ExchangeService] = None
        self.payments: Optional[PaymentService] = None
        self.hub: Optional[BroadcastHub] = None
        self.prices: Optional[PricePoller] = None
        self.simulator: Optional[MiningSimulator] = None
        self._uvicorn_server: Optional[uvicorn.Server] = None

        self.app = FastAPI(title="RigWatch Mining Dashboard", version=__version__)
        self.app.state.server = self
        self._register_error_handlers()
        register_all_routers(self.app)

    async def initialize(self):
        """Open storage and wire up services (must be called in async context)."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.storage = StorageManager(self.db_path)
        await self.storage.initialize()

        self.auth = AuthService(
            self.storage.users,
            admin_key=self._admin_key,
            jwt_secret=self._jwt_secret,
        )
        self.rigs = RigService(self.storage.rigs)
        self.portfolio = PortfolioService(self.storage.balances, self.storage.transactions)
        self.exchanges = ExchangeService(self.storage.exchanges)
        self.payments = PaymentService(self.storage.payments)

        self.hub = BroadcastHub(lambda: self.prices.snapshot.to_dict())
        self.prices = PricePoller(
            hub=self.hub,
            api_url=self.price_api_url,
            interval_sec=self.price_interval,
        )
        self.simulator = MiningSimulator(
            self.storage, self.prices,
            hub=self.hub,
            interval_sec=self.mining_interval,
        )

        logger.info("Services initialized (db=%s)", self.db_path)

    def _register_error_handlers(self):
        app = self.app

        @app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            errors = [
                {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
                for err in exc.errors()
            ]
            return JSONResponse(
                status_code=400,
                content={"detail": "Invalid request", "errors": errors},
            )

        @app.exception_handler(Exception)
        async def unhandled_error(request: Request, exc: Exception):
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # -------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------

    async def start(self):
        """Start storage, background loops and the API server."""
        await self.initialize()

        if self._enable_background:
            await self.prices.start()
            await self.simulator.start()
        else:
            logger.info("Background loops disabled")

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.api_port,
            log_level="info",
        )
        self._uvicorn_server = uvicorn.Server(config)
        logger.info("REST API starting on port %d", self.api_port)
        try:
            await self._uvicorn_server.serve()
        finally:
            await self.stop()

    async def stop(self):
        """Stop background loops, storage and the API server."""
        if self.simulator:
            await self.simulator.stop()
        if self.prices:
            await self.prices.stop()
        if self.storage:
            await self.storage.close()
            self.storage = None
        if self._uvicorn_server:
            self._uvicorn_server.should_exit = True


def main():
    """CLI entry point for the dashboard server."""
    parser = argparse.ArgumentParser(description="RigWatch Mining Dashboard Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--api-port", type=int, default=8080, help="REST API port (default: 8080)")
    parser.add_argument("--db-path", default="data/rigwatch.db", help="SQLite database path (default: data/rigwatch.db)")
    parser.add_argument("--price-api-url", default=DEFAULT_PRICE_API_URL, help="Price API base URL (default: CoinGecko v3)")
    parser.add_argument("--price-interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Price poll interval in seconds (default: 30)")
    parser.add_argument("--mining-interval", type=float, default=DEFAULT_TICK_INTERVAL, help="Mining simulation interval in seconds (default: 60)")
    parser.add_argument("--jwt-secret", default=os.environ.get("RIGWATCH_JWT_SECRET", ""), help="JWT signing secret (default: $RIGWATCH_JWT_SECRET or ephemeral)")
    parser.add_argument("--admin-key", default=os.environ.get("RIGWATCH_ADMIN_KEY", DEFAULT_ADMIN_KEY), help="Admin API key (default: $RIGWATCH_ADMIN_KEY)")
    parser.add_argument("--no-background", action="store_true", help="Disable the price poller and mining simulator")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    server = DashboardServer(
        host=args.host,
        api_port=args.api_port,
        db_path=args.db_path,
        price_api_url=args.price_api_url,
        price_interval=args.price_interval,
        mining_interval=args.mining_interval,
        jwt_secret=args.jwt_secret,
        admin_key=args.admin_key,
        enable_background=not args.no_background,
    )

    logger.info("=" * 60)
    logger.info("  RigWatch Mining Dashboard")
    logger.info("  REST API:    http://localhost:%d", args.api_port)
    logger.info("  WebSocket:   ws://localhost:%d/ws", args.api_port)
    logger.info("  Database:    %s", args.db_path)
    logger.info("  Price feed:  %s (every %ss)", args.price_api_url, args.price_interval)
    logger.info("  Simulator:   every %ss", args.mining_interval)
    logger.info("=" * 60)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
