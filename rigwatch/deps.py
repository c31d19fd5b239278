"""Dependency helpers for router modules."""

from typing import Optional

from fastapi import Header, Query
from starlette.requests import Request

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def get_server(request: Request):
    return request.app.state.server


async def get_owner_id(
    request: Request,
    x_api_key: str = Header(default=""),
    authorization: str = Header(default=""),
) -> str:
    """Authenticated owner identity; 401 when credentials are missing or invalid."""
    srv = get_server(request)
    user = await srv.auth.get_current_account(x_api_key=x_api_key, authorization=authorization)
    return user["id"]


def query_limit(limit: Optional[str] = Query(default=None)) -> int:
    """``?limit=N`` for list endpoints.

    Missing, non-numeric or zero values fall back to the default; anything
    else is clamped to 1..MAX_LIMIT.
    """
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    if value == 0:
        return DEFAULT_LIMIT
    return max(1, min(value, MAX_LIMIT))
