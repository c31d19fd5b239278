"""
ws.py - Broadcast hub for live dashboard updates.

Keeps the set of open WebSocket subscribers and fans typed
``{"type": ..., "data": ...}`` messages out to them. Delivery is best
effort: a channel that is not open is skipped and a channel whose send
fails is dropped from the set.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

logger = logging.getLogger("ws")

MAX_WS_CLIENTS = 200
SEND_TIMEOUT = 2.0


class BroadcastHub:
    def __init__(self, snapshot_provider: Callable[[], dict]):
        # id(connection) -> (connection, owner id or None for anonymous subscribers)
        self._clients: Dict[int, Tuple[WebSocket, Optional[str]]] = {}
        self._snapshot_provider = snapshot_provider
        self._publish_lock = asyncio.Lock()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, ws: WebSocket, owner_id: Optional[str] = None) -> bool:
        await ws.accept()
        if len(self._clients) >= MAX_WS_CLIENTS:
            logger.warning("WebSocket capacity reached (%d)", MAX_WS_CLIENTS)
            await ws.close(code=1013, reason="Server overloaded")
            return False
        # The snapshot must be the first frame; publish() only sees registered channels.
        await self._send_price_snapshot(ws)
        self._clients[id(ws)] = (ws, owner_id)
        logger.info(
            "WebSocket client connected (owner=%s, %d total)",
            owner_id or "-", len(self._clients),
        )
        return True

    def disconnect(self, ws: WebSocket):
        self._clients.pop(id(ws), None)
        logger.info("WebSocket client disconnected (%d total)", len(self._clients))

    async def publish(self, event_type: str, data: Any, owner_id: Optional[str] = None) -> int:
        """Send an event to every open subscriber, or only to ``owner_id``'s subscribers.

        Returns the number of channels the message was delivered to.
        """
        targets = [
            ws for ws, owner in list(self._clients.values())
            if owner_id is None or owner == owner_id
        ]
        if not targets:
            return 0
        msg = json.dumps({"type": event_type, "data": data})
        stale: List[WebSocket] = []
        async with self._publish_lock:
            results = await asyncio.gather(
                *(self._safe_send(ws, msg, stale) for ws in targets)
            )
        for ws in stale:
            self._clients.pop(id(ws), None)
        if stale:
            logger.debug("Dropped %d stale WebSocket client(s)", len(stale))
        return sum(1 for ok in results if ok)

    @staticmethod
    def _is_open(ws: WebSocket) -> bool:
        return (
            ws.client_state == WebSocketState.CONNECTED
            and ws.application_state == WebSocketState.CONNECTED
        )

    async def _safe_send(self, ws: WebSocket, msg: str, stale: List[WebSocket]) -> bool:
        if not self._is_open(ws):
            return False
        try:
            await asyncio.wait_for(ws.send_text(msg), timeout=SEND_TIMEOUT)
        except Exception:
            stale.append(ws)
            return False
        return True

    async def _send_price_snapshot(self, ws: WebSocket):
        try:
            msg = json.dumps({"type": "price_update", "data": self._snapshot_provider()})
            await ws.send_text(msg)
        except Exception:
            logger.exception("Failed to send price snapshot")

    async def handle_connection(self, ws: WebSocket, owner_id: Optional[str] = None):
        if not await self.connect(ws, owner_id):
            return
        try:
            # No client->server messages are defined; drain until the peer leaves.
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.debug("WebSocket receive loop ended", exc_info=True)
        finally:
            self.disconnect(ws)
