import json
import time
import uuid
from typing import Any, Dict, List, Optional

import aiosqlite

_EXCHANGE_COLUMNS = "id, owner_id, exchange, is_connected, api_key_id, settings_json, last_sync"


def _row_to_connection(row) -> dict:
    return {
        "id": row[0],
        "ownerId": row[1],
        "exchange": row[2],
        "isConnected": bool(row[3]),
        "apiKeyId": row[4],
        "settings": json.loads(row[5]),
        "lastSync": row[6],
    }


class ExchangeRepo:
    """Exchange connection preferences, one row per (owner, exchange)."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def get(self, owner_id: str, exchange: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_EXCHANGE_COLUMNS} FROM exchange_connections "
            "WHERE owner_id = ? AND exchange = ?",
            (owner_id, exchange),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_connection(row)

    async def list_for_owner(self, owner_id: str) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_EXCHANGE_COLUMNS} FROM exchange_connections "
            "WHERE owner_id = ? ORDER BY exchange",
            (owner_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_connection(row))
        return results

    async def upsert(
        self,
        owner_id: str,
        exchange: str,
        is_connected: Optional[bool] = None,
        api_key_id: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> dict:
        """Create the connection or update only the supplied fields.

        A new row starts disconnected with no lastSync; an update stamps
        lastSync.
        """
        provided = []
        if is_connected is not None:
            provided.append(("is_connected", int(is_connected)))
        if api_key_id is not None:
            provided.append(("api_key_id", api_key_id))
        if settings is not None:
            provided.append(("settings_json", json.dumps(settings)))

        insert_values = {
            "is_connected": int(bool(is_connected)),
            "api_key_id": api_key_id,
            "settings_json": json.dumps(settings or {}),
        }
        set_clause = ", ".join(
            [f"{col} = excluded.{col}" for col, _ in provided] + ["last_sync = ?"]
        )
        await self._db.execute(
            "INSERT INTO exchange_connections "
            "(id, owner_id, exchange, is_connected, api_key_id, settings_json, last_sync) "
            "VALUES (?, ?, ?, ?, ?, ?, NULL) "
            f"ON CONFLICT(owner_id, exchange) DO UPDATE SET {set_clause}",
            (
                str(uuid.uuid4()), owner_id, exchange,
                insert_values["is_connected"], insert_values["api_key_id"],
                insert_values["settings_json"], time.time(),
            ),
        )
        await self._db.commit()
        return await self.get(owner_id, exchange)
