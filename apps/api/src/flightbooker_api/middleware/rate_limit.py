"""Fixed-window rate limiter middleware on top of the shared cache store."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from flightbooker_api.cache.cache_keys import rate_limit_key
from flightbooker_api.cache.redis_client import get_cache_store
from flightbooker_api.cache.ttl import CacheCategory, ttl_for
from flightbooker_api.config import settings

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from flightbooker_api.cache.redis_client import CacheStore

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-identifier request counter in one-minute windows.

    Counting goes through :meth:`CacheStore.increment`, which returns 0 when
    the cache is unavailable, so a cache outage lets every request through.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int | None = None,
        store: CacheStore | None = None,
    ) -> None:
        super().__init__(app)
        self._rpm = requests_per_minute or settings.rate_limit_per_minute
        self._store = store
        self._window_seconds = ttl_for(CacheCategory.RATE_LIMIT_SHORT)

    def _get_store(self) -> CacheStore | None:
        if self._store is not None:
            return self._store
        try:
            return get_cache_store()
        except RuntimeError:
            return None

    async def dispatch(self, request: Request, call_next) -> Response:
        """Check rate limit, then forward to the next middleware/route."""
        store = self._get_store()
        if store is None:
            return await call_next(request)

        identifier = self._get_identifier(request)
        window = int(time.time() // self._window_seconds)
        count = await store.increment(
            rate_limit_key(identifier, str(window)), self._window_seconds
        )

        if count > self._rpm:
            logger.info("Rate limit exceeded for %s", identifier)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": str(self._window_seconds)},
            )

        return await call_next(request)

    @staticmethod
    def _get_identifier(request: Request) -> str:
        """Extract user ID from JWT bearer token, or fall back to client IP."""
        auth = request.headers.get("authorization", "")
        if auth.startswith("Bearer "):
            token = auth[7:]
            try:
                payload = jwt.decode(
                    token,
                    settings.jwt_secret,
                    algorithms=[settings.jwt_algorithm],
                )
                user_id = payload.get("sub")
                if user_id:
                    return f"user:{user_id}"
            except jwt.InvalidTokenError:
                pass

        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        client = request.client
        if client is not None:
            return f"ip:{client.host}"
        return "ip:unknown"
