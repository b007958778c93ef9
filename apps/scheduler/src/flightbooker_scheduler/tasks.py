"""Celery tasks for cache maintenance."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import redis.asyncio as redis

from flightbooker_api.cache.redis_client import CacheStore
from flightbooker_api.services.idempotency import IdempotencyStore, utc_now

from .beat_schedule import PURGE_IDEMPOTENCY_TASK
from .celery_app import app
from .config import scheduler_settings

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


async def purge_idempotency_records(
    store: CacheStore,
    clock: Callable[[], datetime] = utc_now,
) -> int:
    """Remove expired idempotency records from *store*."""
    return await IdempotencyStore(store, clock=clock).purge_expired()


@app.task(name=PURGE_IDEMPOTENCY_TASK)
def purge_expired_idempotency() -> dict:
    """Sweep ``idempotency:*`` and drop every record past its window."""

    async def _run() -> int:
        client = redis.from_url(
            scheduler_settings.redis_url,
            decode_responses=True,
            socket_timeout=scheduler_settings.redis_timeout,
        )
        try:
            store = CacheStore(
                client, operation_timeout=scheduler_settings.redis_timeout
            )
            return await purge_idempotency_records(store)
        finally:
            await client.aclose()

    purged = asyncio.run(_run())
    logger.info("Idempotency sweep removed %d records", purged)
    return {
        "purged_count": purged,
        "timestamp": datetime.now(UTC).isoformat(),
    }
