"""
RigWatch - Mining Dashboard Server Package

Backend for a crypto-mining monitoring dashboard. Includes SQLite storage,
a price feed poller, a simulated mining loop, a WebSocket broadcast hub
and the REST API.
"""

__version__ = "0.1.0"

__all__ = [
    "auth",
    "exchanges",
    "payments",
    "portfolio",
    "prices",
    "profitability",
    "rigs",
    "server",
    "simulator",
    "storage",
    "ws",
]
