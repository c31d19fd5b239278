import logging
import time
from typing import Optional

import aiosqlite

logger = logging.getLogger("storage")

_USER_COLUMNS = (
    "id, email, first_name, last_name, profile_image_url, api_key, created_at, updated_at"
)


def _row_to_user(row) -> dict:
    return {
        "id": row[0],
        "email": row[1],
        "firstName": row[2],
        "lastName": row[3],
        "profileImageUrl": row[4],
        "api_key": row[5],
        "createdAt": row[6],
        "updatedAt": row[7],
    }


class UserRepo:
    """CRUD operations for the users table."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def create(
        self,
        user_id: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Optional[dict]:
        now = time.time()
        try:
            await self._db.execute(
                "INSERT OR IGNORE INTO users (id, email, first_name, last_name, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user_id, email, first_name, last_name, now, now),
            )
            await self._db.commit()
        except Exception:
            logger.exception("Failed to create user %s", user_id)
            return None
        return await self.get(user_id)

    async def get(self, user_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
            (user_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_api_key(self, api_key: str) -> Optional[dict]:
        if not api_key:
            return None
        async with self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE api_key = ? AND api_key != ''",
            (api_key,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_user(row)

    async def set_api_key(self, user_id: str, api_key: str):
        now = time.time()
        await self._db.execute(
            "UPDATE users SET api_key = ?, updated_at = ? WHERE id = ?",
            (api_key, now, user_id),
        )
        await self._db.commit()
