import time
import uuid
from typing import List, Optional

import aiosqlite

_PAYMENT_COLUMNS = (
    "id, owner_id, network, amount, currency, to_address, from_address, "
    "transaction_hash, status, purpose, timestamp"
)


def _row_to_payment(row) -> dict:
    return {
        "id": row[0],
        "ownerId": row[1],
        "network": row[2],
        "amount": row[3],
        "currency": row[4],
        "toAddress": row[5],
        "fromAddress": row[6],
        "transactionHash": row[7],
        "status": row[8],
        "purpose": row[9],
        "timestamp": row[10],
    }


class PaymentRepo:
    """CRUD operations for the payments table."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(
        self,
        owner_id: str,
        network: str,
        amount: float,
        currency: str,
        to_address: str,
        from_address: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        status: str = "pending",
        purpose: Optional[str] = None,
    ) -> dict:
        payment_id = str(uuid.uuid4())
        await self._db.execute(
            f"INSERT INTO payments ({_PAYMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (payment_id, owner_id, network, amount, currency, to_address, from_address,
             transaction_hash, status, purpose, time.time()),
        )
        await self._db.commit()
        return await self.get(payment_id)

    async def get(self, payment_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE id = ?",
            (payment_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_payment(row)

    async def list_for_owner(self, owner_id: str, limit: int = 10) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE owner_id = ? "
            "ORDER BY timestamp DESC, rowid DESC LIMIT ?",
            (owner_id, limit),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_payment(row))
        return results

    async def update_status(
        self,
        owner_id: str,
        payment_id: str,
        status: str,
        transaction_hash: Optional[str] = None,
    ) -> Optional[dict]:
        if transaction_hash:
            cursor = await self._db.execute(
                "UPDATE payments SET status = ?, transaction_hash = ? WHERE id = ? AND owner_id = ?",
                (status, transaction_hash, payment_id, owner_id),
            )
        else:
            cursor = await self._db.execute(
                "UPDATE payments SET status = ? WHERE id = ? AND owner_id = ?",
                (status, payment_id, owner_id),
            )
        await self._db.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get(payment_id)
