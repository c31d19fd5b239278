import logging
import time
import uuid
from typing import List, Optional

import aiosqlite

logger = logging.getLogger("storage")

_RIG_COLUMNS = (
    "id, owner_id, name, model, cryptocurrency, hash_rate, hash_rate_unit, "
    "power_consumption, is_active, daily_earnings, created_at"
)

# wire name -> column name, for partial updates
UPDATABLE_FIELDS = {
    "name": "name",
    "model": "model",
    "cryptocurrency": "cryptocurrency",
    "hashRate": "hash_rate",
    "hashRateUnit": "hash_rate_unit",
    "powerConsumption": "power_consumption",
    "isActive": "is_active",
    "dailyEarnings": "daily_earnings",
}


def _row_to_rig(row) -> dict:
    return {
        "id": row[0],
        "ownerId": row[1],
        "name": row[2],
        "model": row[3],
        "cryptocurrency": row[4],
        "hashRate": row[5],
        "hashRateUnit": row[6],
        "powerConsumption": row[7],
        "isActive": bool(row[8]),
        "dailyEarnings": row[9],
        "createdAt": row[10],
    }


class RigRepo:
    """CRUD operations for the mining_rigs table."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(
        self,
        owner_id: str,
        name: str,
        model: str,
        cryptocurrency: str,
        hash_rate: float,
        hash_rate_unit: str,
        power_consumption: float,
        is_active: bool = True,
    ) -> dict:
        rig_id = str(uuid.uuid4())
        now = time.time()
        await self._db.execute(
            "INSERT INTO mining_rigs (id, owner_id, name, model, cryptocurrency, hash_rate, "
            "hash_rate_unit, power_consumption, is_active, daily_earnings, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0.0, ?)",
            (rig_id, owner_id, name, model, cryptocurrency, hash_rate,
             hash_rate_unit, power_consumption, int(is_active), now),
        )
        await self._db.commit()
        return await self.get(rig_id)

    async def get(self, rig_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_RIG_COLUMNS} FROM mining_rigs WHERE id = ?",
            (rig_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_rig(row)

    async def get_owned(self, owner_id: str, rig_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_RIG_COLUMNS} FROM mining_rigs WHERE id = ? AND owner_id = ?",
            (rig_id, owner_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_rig(row)

    async def list_for_owner(self, owner_id: str) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_RIG_COLUMNS} FROM mining_rigs WHERE owner_id = ? ORDER BY created_at, rowid",
            (owner_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_rig(row))
        return results

    async def list_owner_ids(self) -> List[str]:
        async with self._db.execute(
            "SELECT DISTINCT owner_id FROM mining_rigs ORDER BY owner_id"
        ) as cursor:
            return [row[0] async for row in cursor]

    async def update(self, owner_id: str, rig_id: str, updates: dict) -> Optional[dict]:
        """Apply a partial update keyed by wire field names. Unknown keys are ignored."""
        assignments = []
        params = []
        for field, column in UPDATABLE_FIELDS.items():
            if field in updates:
                value = updates[field]
                if field == "isActive":
                    value = int(bool(value))
                assignments.append(f"{column} = ?")
                params.append(value)
        if assignments:
            params.extend([rig_id, owner_id])
            await self._db.execute(
                f"UPDATE mining_rigs SET {', '.join(assignments)} WHERE id = ? AND owner_id = ?",
                tuple(params),
            )
            await self._db.commit()
        return await self.get_owned(owner_id, rig_id)

    async def delete(self, owner_id: str, rig_id: str) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM mining_rigs WHERE id = ? AND owner_id = ?",
            (rig_id, owner_id),
        )
        await self._db.commit()
        return cursor.rowcount > 0
