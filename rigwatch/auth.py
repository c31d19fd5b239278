"""
auth.py - API key + JWT authentication.

Produces the owner identity every scoped route works with. Two
credential forms are accepted:
  1. Authorization: Bearer <jwt>  (POST /api/auth/login, in exchange for the API key)
  2. X-API-Key: <key>             (issued by POST /api/auth/register)

resolve_account() checks the bearer token first, then the API key.
"""

import logging
import secrets
import time
from typing import TYPE_CHECKING, Optional

import jwt as pyjwt
from fastapi import Header, HTTPException

if TYPE_CHECKING:
    from rigwatch.storage import UserRepo

logger = logging.getLogger("auth")

DEFAULT_ADMIN_KEY = "admin-test-key-do-not-use-in-production"
ADMIN_USER_ID = "_admin"
JWT_TTL = 86400  # 24 hours
JWT_ALGORITHM = "HS256"


def public_user(user: dict) -> dict:
    """User record without credentials."""
    return {k: v for k, v in user.items() if k != "api_key"}


class AuthService:
    """API key / JWT authentication over the users table."""

    def __init__(
        self,
        user_repo: "UserRepo",
        admin_key: str = DEFAULT_ADMIN_KEY,
        jwt_secret: str = "",
    ):
        self._repo = user_repo
        self._admin_key = admin_key
        self._jwt_secret = jwt_secret or secrets.token_hex(32)
        if not jwt_secret:
            logger.warning(
                "No --jwt-secret provided; generated ephemeral secret "
                "(JWTs will invalidate on restart)"
            )

    @staticmethod
    def generate_api_key() -> str:
        return secrets.token_hex(16)

    # -------------------------------------------------------------------
    # JWT
    # -------------------------------------------------------------------

    def issue_jwt(self, user_id: str) -> str:
        now = int(time.time())
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + JWT_TTL,
        }
        return pyjwt.encode(payload, self._jwt_secret, algorithm=JWT_ALGORITHM)

    def decode_jwt(self, token: str) -> Optional[dict]:
        try:
            return pyjwt.decode(token, self._jwt_secret, algorithms=[JWT_ALGORITHM])
        except pyjwt.ExpiredSignatureError:
            return None
        except pyjwt.InvalidTokenError:
            return None

    # -------------------------------------------------------------------
    # Registration / login
    # -------------------------------------------------------------------

    async def register(
        self,
        user_id: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict:
        if not user_id or not user_id.strip():
            raise ValueError("userId is required")
        if user_id == ADMIN_USER_ID:
            raise ValueError(f"userId '{user_id}' is reserved")
        existing = await self._repo.get(user_id)
        if existing is not None:
            raise ValueError(f"User '{user_id}' already exists")
        user = await self._repo.create(user_id, email=email, first_name=first_name, last_name=last_name)
        if user is None:
            raise RuntimeError("Failed to create user")
        api_key = self.generate_api_key()
        await self._repo.set_api_key(user_id, api_key)
        user["api_key"] = api_key
        logger.info("Registered user %s", user_id)
        return user

    async def login(self, user_id: str, api_key: str) -> str:
        """Exchange a user's API key for a JWT.

        Raises PermissionError for an unknown user or a wrong key; the two
        cases are not distinguished.
        """
        user = await self._repo.get(user_id) if user_id else None
        stored = (user or {}).get("api_key") or ""
        if not stored or not api_key or not secrets.compare_digest(api_key, stored):
            logger.warning("Rejected login for user %s", user_id)
            raise PermissionError("Invalid user id or API key")
        return self.issue_jwt(user_id)

    # -------------------------------------------------------------------
    # FastAPI dependencies
    # -------------------------------------------------------------------

    async def resolve_account(
        self,
        x_api_key: str = Header(default=""),
        authorization: str = Header(default=""),
    ) -> Optional[dict]:
        """Resolve a JWT or API key to a user. Returns None if no valid credentials."""
        if authorization.startswith("Bearer "):
            claims = self.decode_jwt(authorization[7:])
            if claims:
                user = await self._repo.get(claims.get("sub", ""))
                if user:
                    return user

        if not x_api_key:
            return None

        if secrets.compare_digest(x_api_key, self._admin_key):
            return {
                "id": ADMIN_USER_ID,
                "email": None,
                "firstName": None,
                "lastName": None,
                "api_key": x_api_key,
            }

        return await self._repo.get_by_api_key(x_api_key)

    async def get_current_account(
        self,
        x_api_key: str = Header(default=""),
        authorization: str = Header(default=""),
    ) -> dict:
        user = await self.resolve_account(x_api_key, authorization)
        if user is None:
            raise HTTPException(
                status_code=401,
                detail="Missing or invalid credentials. Pass Authorization: Bearer <jwt> or X-API-Key header.",
            )
        return user
