"""
exchanges.py - Exchange connection preferences.

Connections are stored preferences only; nothing here talks to an
exchange. Settings are a flat mapping whose values must be booleans,
numbers or strings.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from rigwatch.storage import ExchangeRepo

logger = logging.getLogger("exchanges")

MAX_SETTINGS_KEYS = 50
SETTING_VALUE_TYPES = (bool, int, float, str)


def validate_settings(settings: Any) -> Dict[str, Any]:
    if not isinstance(settings, dict):
        raise ValueError("settings must be an object")
    if len(settings) > MAX_SETTINGS_KEYS:
        raise ValueError(f"settings may hold at most {MAX_SETTINGS_KEYS} keys")
    for key, value in settings.items():
        if not isinstance(key, str) or not key:
            raise ValueError("settings keys must be non-empty strings")
        if not isinstance(value, SETTING_VALUE_TYPES):
            raise ValueError(f"settings['{key}'] must be a boolean, number or string")
    return dict(settings)


class ExchangeService:
    def __init__(self, repo: "ExchangeRepo"):
        self._repo = repo

    async def list_connections(self, owner_id: str) -> List[dict]:
        return await self._repo.list_for_owner(owner_id)

    async def save_connection(
        self,
        owner_id: str,
        exchange: str,
        is_connected: Optional[bool] = None,
        api_key_id: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> dict:
        if not exchange or not exchange.strip():
            raise ValueError("exchange is required")
        if settings is not None:
            settings = validate_settings(settings)
        connection = await self._repo.upsert(
            owner_id,
            exchange,
            is_connected=is_connected,
            api_key_id=api_key_id,
            settings=settings,
        )
        logger.info(
            "Exchange connection saved: owner=%s exchange=%s connected=%s",
            owner_id, exchange, connection["isConnected"],
        )
        return connection
