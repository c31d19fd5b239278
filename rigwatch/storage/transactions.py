import time
import uuid
from typing import List, Optional

import aiosqlite

from .balances import UPSERT_ADD_SQL

_TX_COLUMNS = "id, owner_id, rig_id, type, cryptocurrency, amount, usd_value, timestamp"


def _row_to_tx(row) -> dict:
    return {
        "id": row[0],
        "ownerId": row[1],
        "rigId": row[2],
        "type": row[3],
        "cryptocurrency": row[4],
        "amount": row[5],
        "usdValue": row[6],
        "timestamp": row[7],
    }


class TransactionRepo:
    """Insert + read-only queries for the append-only mining_transactions log."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def record_mining_reward(
        self,
        owner_id: str,
        rig_id: str,
        cryptocurrency: str,
        amount: float,
        usd_value: float,
    ) -> dict:
        """Append a mining_reward entry and credit the owner's balance in one commit."""
        tx_id = str(uuid.uuid4())
        now = time.time()
        try:
            await self._db.execute(
                f"INSERT INTO mining_transactions ({_TX_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (tx_id, owner_id, rig_id, "mining_reward", cryptocurrency, amount, usd_value, now),
            )
            await self._db.execute(
                UPSERT_ADD_SQL,
                (str(uuid.uuid4()), owner_id, cryptocurrency, amount, now),
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return await self.get(tx_id)

    async def get(self, tx_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_TX_COLUMNS} FROM mining_transactions WHERE id = ?",
            (tx_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_tx(row)

    async def list_for_owner(self, owner_id: str, limit: int = 10) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_TX_COLUMNS} FROM mining_transactions WHERE owner_id = ? "
            "ORDER BY timestamp DESC, rowid DESC LIMIT ?",
            (owner_id, limit),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_tx(row))
        return results
