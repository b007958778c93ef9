"""FastAPI dependency injection providers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from flightbooker_api.cache.redis_client import CacheStore, get_cache_store
from flightbooker_api.config import settings
from flightbooker_api.providers.http import HttpInventoryProvider
from flightbooker_db.database import get_db as _db_dependency

if TYPE_CHECKING:
    from flightbooker_api.providers.base import FlightInventoryProvider

logger = logging.getLogger(__name__)

# Re-export the DB dependency unchanged.
get_db = _db_dependency

ADMIN_ROLE = "admin"

_bearer_scheme = HTTPBearer(auto_error=False)


def get_cache() -> CacheStore:
    """Return the shared fail-open cache store."""
    return get_cache_store()


def get_inventory_provider(request: Request) -> FlightInventoryProvider:
    """Return the provider created at startup, or a fresh one outside the app."""
    provider = getattr(request.app.state, "inventory_provider", None)
    if provider is None:
        provider = HttpInventoryProvider()
        request.app.state.inventory_provider = provider
    return provider


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)
    ],
) -> dict | None:
    """Decode a JWT and return its claims, or *None* if unauthenticated."""
    if credentials is None:
        return None
    try:
        return jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError:
        return None


async def require_current_user(
    user: Annotated[dict | None, Depends(get_current_user)],
) -> dict:
    """Same as :func:`get_current_user` but raises 401 when absent."""
    if user is None or user_id_from_token(user) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return user


async def require_admin(
    user: Annotated[dict, Depends(require_current_user)],
) -> dict:
    """Raise 403 unless the token carries the admin role."""
    if user.get("role") != ADMIN_ROLE:
        logger.warning("Admin access denied for user %s", user_id_from_token(user))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def user_id_from_token(user: dict | None) -> str | None:
    """Extract the user id from a decoded JWT payload."""
    if user is None:
        return None
    raw = user.get("sub") or user.get("user_id")
    return str(raw) if raw is not None else None


def client_ip(request: Request) -> str | None:
    """First ``X-Forwarded-For`` hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client is not None else None
