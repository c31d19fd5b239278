"""
rigs.py - Mining rig service.

Owner-scoped rig management on top of RigRepo. Every read and write is
keyed by the caller's owner id; a rig that belongs to someone else is
reported exactly like a rig that does not exist.
"""

import logging
import math
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from rigwatch.storage import RigRepo

logger = logging.getLogger("rigs")

SUPPORTED_CRYPTOCURRENCIES = ("BTC", "ETH")

# wire fields that can never be null once a rig exists
_REQUIRED_FIELDS = (
    "name", "model", "cryptocurrency", "hashRate", "hashRateUnit",
    "powerConsumption", "isActive", "dailyEarnings",
)


def _validate_rig_fields(fields: dict):
    for key in _REQUIRED_FIELDS:
        if key in fields and fields[key] is None:
            raise ValueError(f"{key} cannot be null")
    for key in ("hashRate", "powerConsumption", "dailyEarnings"):
        if key in fields and not math.isfinite(fields[key]):
            raise ValueError(f"{key} must be a finite number")
    if "cryptocurrency" in fields and fields["cryptocurrency"] not in SUPPORTED_CRYPTOCURRENCIES:
        raise ValueError("cryptocurrency must be BTC or ETH")
    if "hashRate" in fields and fields["hashRate"] <= 0:
        raise ValueError("hashRate must be positive")
    if "powerConsumption" in fields and fields["powerConsumption"] <= 0:
        raise ValueError("powerConsumption must be positive")
    for key in ("name", "model", "hashRateUnit"):
        if key in fields and not str(fields[key]).strip():
            raise ValueError(f"{key} must not be empty")
    if "dailyEarnings" in fields and fields["dailyEarnings"] < 0:
        raise ValueError("dailyEarnings must be non-negative")


class RigService:
    def __init__(self, repo: "RigRepo"):
        self._repo = repo

    async def list_rigs(self, owner_id: str) -> List[dict]:
        return await self._repo.list_for_owner(owner_id)

    async def get_rig(self, owner_id: str, rig_id: str) -> Optional[dict]:
        return await self._repo.get_owned(owner_id, rig_id)

    async def create_rig(
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
        _validate_rig_fields({
            "name": name,
            "model": model,
            "cryptocurrency": cryptocurrency,
            "hashRate": hash_rate,
            "hashRateUnit": hash_rate_unit,
            "powerConsumption": power_consumption,
            "isActive": is_active,
        })
        rig = await self._repo.create(
            owner_id=owner_id,
            name=name,
            model=model,
            cryptocurrency=cryptocurrency,
            hash_rate=hash_rate,
            hash_rate_unit=hash_rate_unit,
            power_consumption=power_consumption,
            is_active=is_active,
        )
        logger.info(
            "Rig created: owner=%s id=%s %s %.2f %s",
            owner_id, rig["id"], cryptocurrency, hash_rate, hash_rate_unit,
        )
        return rig

    async def update_rig(self, owner_id: str, rig_id: str, updates: dict) -> Optional[dict]:
        """Partially update a rig. Returns None if the caller owns no such rig."""
        _validate_rig_fields(updates)
        existing = await self._repo.get_owned(owner_id, rig_id)
        if existing is None:
            return None
        rig = await self._repo.update(owner_id, rig_id, updates)
        if "isActive" in updates and updates["isActive"] != existing["isActive"]:
            logger.info("Rig %s %s", rig_id, "activated" if updates["isActive"] else "deactivated")
        return rig

    async def delete_rig(self, owner_id: str, rig_id: str) -> bool:
        deleted = await self._repo.delete(owner_id, rig_id)
        if deleted:
            logger.info("Rig deleted: owner=%s id=%s", owner_id, rig_id)
        return deleted
