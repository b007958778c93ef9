"""FastAPI application factory."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from flightbooker_api.config import settings

# Propagate DB URL so flightbooker_db.database picks it up via os.getenv.
os.environ.setdefault("DATABASE_URL", settings.database_url)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flightbooker_api.cache.redis_client import close_redis, init_redis
from flightbooker_api.logging_config import configure_logging
from flightbooker_api.middleware.rate_limit import RateLimitMiddleware
from flightbooker_api.providers.http import HttpInventoryProvider
from flightbooker_api.routers import admin_cache, bookings, search

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage startup / shutdown resources."""
    configure_logging(settings.log_level)
    await init_redis(
        settings.redis_url,
        enabled=settings.cache_enabled,
        socket_timeout=settings.cache_socket_timeout,
        connect_timeout=settings.cache_connect_timeout,
        operation_timeout=settings.cache_operation_timeout,
    )
    app.state.inventory_provider = HttpInventoryProvider()
    yield
    await app.state.inventory_provider.close()
    await close_redis()


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Flightbooker API",
        version="0.1.0",
        lifespan=_lifespan,
    )

    # Middleware (order matters: last added = first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
    )

    # Routers
    _prefix = "/api/v1"
    app.include_router(search.router, prefix=_prefix)
    app.include_router(bookings.router, prefix=_prefix)
    app.include_router(admin_cache.router, prefix=_prefix)

    return app


app = create_app()
