import time
import uuid
from typing import List, Optional

import aiosqlite

_UPSERT_SET_SQL = (
    "INSERT INTO portfolio_balances (id, owner_id, cryptocurrency, amount, last_updated) "
    "VALUES (?, ?, ?, ?, ?) "
    "ON CONFLICT(owner_id, cryptocurrency) DO UPDATE SET "
    "amount = excluded.amount, last_updated = excluded.last_updated"
)

UPSERT_ADD_SQL = (
    "INSERT INTO portfolio_balances (id, owner_id, cryptocurrency, amount, last_updated) "
    "VALUES (?, ?, ?, ?, ?) "
    "ON CONFLICT(owner_id, cryptocurrency) DO UPDATE SET "
    "amount = portfolio_balances.amount + excluded.amount, last_updated = excluded.last_updated"
)


def _row_to_balance(row) -> dict:
    return {
        "id": row[0],
        "ownerId": row[1],
        "cryptocurrency": row[2],
        "amount": row[3],
        "lastUpdated": row[4],
    }


class BalanceRepo:
    """Portfolio balances, one row per (owner, cryptocurrency).

    Both write paths (set_amount here, UPSERT_ADD_SQL for reward credits
    in TransactionRepo) are single-statement upserts against the unique
    (owner_id, cryptocurrency) index, so concurrent writers never create
    a second row and an increment can never be lost between a read and a
    write.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def get(self, owner_id: str, cryptocurrency: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT id, owner_id, cryptocurrency, amount, last_updated "
            "FROM portfolio_balances WHERE owner_id = ? AND cryptocurrency = ?",
            (owner_id, cryptocurrency),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_balance(row)

    async def list_for_owner(self, owner_id: str) -> List[dict]:
        results = []
        async with self._db.execute(
            "SELECT id, owner_id, cryptocurrency, amount, last_updated "
            "FROM portfolio_balances WHERE owner_id = ? ORDER BY cryptocurrency",
            (owner_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_balance(row))
        return results

    async def set_amount(self, owner_id: str, cryptocurrency: str, amount: float) -> dict:
        await self._db.execute(
            _UPSERT_SET_SQL,
            (str(uuid.uuid4()), owner_id, cryptocurrency, amount, time.time()),
        )
        await self._db.commit()
        return await self.get(owner_id, cryptocurrency)
