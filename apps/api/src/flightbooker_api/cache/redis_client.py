"""Redis connection pool and the fail-open cache store.

Every :class:`CacheStore` operation degrades to a miss or a no-op when Redis
is unreachable, slow or returns something that cannot be decoded: callers get
``None`` / ``False`` / ``0`` back, never an exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

logger = logging.getLogger(__name__)

# TTL sentinels mirroring Redis' own TTL replies
NO_EXPIRY = -1
KEY_ABSENT = -2

_BACKEND_ERRORS = (RedisError, OSError, TimeoutError)
_DELETE_BATCH = 500


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Aggregate counters reported by the backend."""

    connected: bool
    total_keys: int = 0
    memory_usage: str | None = None
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class CacheStore:
    """JSON cache on top of an async Redis client, or a no-op when disabled."""

    def __init__(
        self,
        client: redis.Redis | None,
        *,
        operation_timeout: float = 2.5,
    ) -> None:
        self._client = client
        self._timeout = operation_timeout

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> redis.Redis | None:
        return self._client

    async def _call[T](
        self,
        op: str,
        fn: Callable[[redis.Redis], Awaitable[T]],
        default: T,
        key: str = "",
    ) -> T:
        """Run *fn* against the backend, returning *default* on any failure."""
        if self._client is None:
            return default
        try:
            async with asyncio.timeout(self._timeout):
                return await fn(self._client)
        except _BACKEND_ERRORS as exc:
            logger.warning("Cache %s failed for %r: %s", op, key, exc)
            return default

    # ------------------------------------------------------------------
    # Single-key operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Return the decoded value for *key*, or ``None`` on miss or failure."""
        raw = await self._call("get", lambda c: c.get(key), None, key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Cache entry %r is not valid JSON, ignoring", key)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store *value*; without *ttl* the entry never expires."""
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot serialise cache value for %r: %s", key, exc)
            return False

        async def _set(c: redis.Redis) -> bool:
            await c.set(key, payload, ex=ttl)
            return True

        return await self._call("set", _set, False, key)

    async def delete(self, key: str) -> bool:
        async def _delete(c: redis.Redis) -> bool:
            await c.delete(key)
            return True

        return await self._call("delete", _delete, False, key)

    async def exists(self, key: str) -> bool:
        async def _exists(c: redis.Redis) -> bool:
            return await c.exists(key) == 1

        return await self._call("exists", _exists, False, key)

    async def ttl(self, key: str) -> int:
        """Seconds left for *key*; ``-1`` without expiry, ``-2`` when absent."""
        return await self._call("ttl", lambda c: c.ttl(key), KEY_ABSENT, key)

    async def increment(self, key: str, ttl: int | None = None) -> int:
        """Increment a counter, applying *ttl* only when the counter is created."""

        async def _incr(c: redis.Redis) -> int:
            value = await c.incr(key)
            if ttl and value == 1:
                await c.expire(key, ttl)
            return value

        return await self._call("incr", _incr, 0, key)

    # ------------------------------------------------------------------
    # Multi-key operations
    # ------------------------------------------------------------------

    async def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        """Values for *keys* in input order, ``None`` for each miss."""
        if not keys:
            return []
        raws = await self._call("mget", lambda c: c.mget(list(keys)), None)
        if raws is None:
            return [None] * len(keys)
        values: list[Any | None] = []
        for raw in raws:
            try:
                values.append(json.loads(raw) if raw is not None else None)
            except (TypeError, ValueError):
                values.append(None)
        return values

    async def set_many(
        self,
        entries: Mapping[str, Any],
        ttl: int | None = None,
    ) -> bool:
        if not entries:
            return True
        try:
            payload = {k: json.dumps(v, default=str) for k, v in entries.items()}
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot serialise cache values: %s", exc)
            return False

        async def _mset(c: redis.Redis) -> bool:
            if ttl is None:
                await c.mset(payload)
            else:
                pipe = c.pipeline(transaction=True)
                for key, value in payload.items():
                    pipe.set(key, value, ex=ttl)
                await pipe.execute()
            return True

        return await self._call("mset", _mset, False)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching the glob *pattern*; returns the count."""

        async def _delete_matching(c: redis.Redis) -> int:
            deleted = 0
            batch: list[str] = []
            async for key in c.scan_iter(match=pattern, count=_DELETE_BATCH):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    deleted += await c.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await c.delete(*batch)
            return deleted

        return await self._call("delete_pattern", _delete_matching, 0, pattern)

    async def scan_keys(self, pattern: str) -> list[str]:
        """List keys matching *pattern* (admin and sweep use only)."""

        async def _scan(c: redis.Redis) -> list[str]:
            return [k async for k in c.scan_iter(match=pattern, count=_DELETE_BATCH)]

        return await self._call("scan", _scan, [], pattern)

    async def flush_all(self) -> bool:
        """Drop every entry in the cache database."""

        async def _flush(c: redis.Redis) -> bool:
            await c.flushdb()
            return True

        flushed = await self._call("flush", _flush, False)
        if flushed:
            logger.warning("Cache flushed: all entries cleared")
        return flushed

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        return await self._call("ping", lambda c: c.ping(), False)

    async def stats(self) -> CacheStats:
        """Hit/miss counters, key count and memory usage from ``INFO``."""
        if self._client is None:
            return CacheStats(connected=False)

        async def _stats(c: redis.Redis) -> CacheStats:
            info = await c.info("stats")
            memory = await c.info("memory")
            return CacheStats(
                connected=True,
                total_keys=await c.dbsize(),
                memory_usage=memory.get("used_memory_human"),
                hits=int(info.get("keyspace_hits", 0)),
                misses=int(info.get("keyspace_misses", 0)),
            )

        try:
            async with asyncio.timeout(self._timeout):
                return await _stats(self._client)
        except _BACKEND_ERRORS as exc:
            logger.warning("Cache stats unavailable: %s", exc)
            return CacheStats(connected=await self.ping())


# ----------------------------------------------------------------------
# Shared pool
# ----------------------------------------------------------------------

cache_store: CacheStore | None = None


async def init_redis(
    url: str,
    *,
    enabled: bool = True,
    socket_timeout: float = 2.0,
    connect_timeout: float = 2.0,
    operation_timeout: float = 2.5,
) -> CacheStore:
    """Create the shared Redis connection pool and cache store."""
    global cache_store
    client: redis.Redis | None = None
    if enabled:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=connect_timeout,
            health_check_interval=30,
        )
        logger.info("Redis pool initialised: %s", url)
    else:
        logger.info("Redis disabled, caching is a no-op")
    cache_store = CacheStore(client, operation_timeout=operation_timeout)
    return cache_store


async def close_redis() -> None:
    """Gracefully close the Redis pool."""
    global cache_store
    if cache_store is not None and cache_store.client is not None:
        await cache_store.client.aclose()
        logger.info("Redis pool closed")
    cache_store = None


def get_cache_store() -> CacheStore:
    """Return the active cache store (raises if not initialised)."""
    if cache_store is None:
        msg = "Redis pool has not been initialised"
        raise RuntimeError(msg)
    return cache_store
