"""Admin cache-management router."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flightbooker_api.cache.invalidation import (
    InvalidationCategory,
    invalidate_category,
)
from flightbooker_api.cache.redis_client import KEY_ABSENT, CacheStore
from flightbooker_api.dependencies import get_cache, require_admin, user_id_from_token
from flightbooker_api.schemas.cache import (
    CacheIncrementRequest,
    CacheIncrementResponse,
    CacheKeyResponse,
    CacheMutationResponse,
    CacheSetRequest,
    CacheStatsResponse,
    DeletePatternRequest,
    InvalidateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/cache", tags=["admin"])

CacheDep = Annotated[CacheStore, Depends(get_cache)]
AdminUser = Annotated[dict, Depends(require_admin)]


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: CacheDep, admin: AdminUser) -> CacheStatsResponse:
    stats = await cache.stats()
    return CacheStatsResponse(
        connected=stats.connected,
        total_keys=stats.total_keys,
        memory_usage=stats.memory_usage,
        hits=stats.hits,
        misses=stats.misses,
        hit_rate=round(stats.hit_rate, 4),
    )


@router.get("/keys/{key:path}", response_model=CacheKeyResponse)
async def get_key(key: str, cache: CacheDep, admin: AdminUser) -> CacheKeyResponse:
    """Value, existence and remaining TTL of a single key."""
    exists = await cache.exists(key)
    return CacheKeyResponse(
        key=key,
        exists=exists,
        ttl=await cache.ttl(key) if exists else KEY_ABSENT,
        value=await cache.get(key) if exists else None,
    )


@router.put("/keys/{key:path}", response_model=CacheMutationResponse)
async def set_key(
    key: str,
    body: CacheSetRequest,
    cache: CacheDep,
    admin: AdminUser,
) -> CacheMutationResponse:
    success = await cache.set(key, body.value, body.ttl)
    logger.info("Cache key %s set by admin %s", key, user_id_from_token(admin))
    return CacheMutationResponse(
        success=success,
        message="Cache entry created" if success else "Failed to set cache",
    )


@router.delete("/keys/{key:path}", response_model=CacheMutationResponse)
async def delete_key(
    key: str,
    cache: CacheDep,
    admin: AdminUser,
) -> CacheMutationResponse:
    success = await cache.delete(key)
    logger.info("Cache key %s deleted by admin %s", key, user_id_from_token(admin))
    return CacheMutationResponse(
        success=success,
        message="Cache entry deleted" if success else "Failed to delete cache",
    )


@router.post("/increment", response_model=CacheIncrementResponse)
async def increment_key(
    body: CacheIncrementRequest,
    cache: CacheDep,
    admin: AdminUser,
) -> CacheIncrementResponse:
    value = await cache.increment(body.key, body.ttl)
    return CacheIncrementResponse(key=body.key, value=value)


@router.post("/delete-pattern", response_model=CacheMutationResponse)
async def delete_pattern(
    body: DeletePatternRequest,
    cache: CacheDep,
    admin: AdminUser,
) -> CacheMutationResponse:
    deleted = await cache.delete_pattern(body.pattern)
    logger.warning(
        "Cache pattern %s deleted by admin %s (%d keys)",
        body.pattern,
        user_id_from_token(admin),
        deleted,
    )
    return CacheMutationResponse(
        success=True,
        message=f"Deleted {deleted} cache entries",
        deleted=deleted,
    )


@router.post("/invalidate", response_model=CacheMutationResponse)
async def invalidate(
    body: InvalidateRequest,
    cache: CacheDep,
    admin: AdminUser,
) -> CacheMutationResponse:
    """Drop one cache category; ``all`` flushes everything."""
    deleted = await invalidate_category(cache, body.category)
    logger.warning(
        "Cache category %s invalidated by admin %s",
        body.category.value,
        user_id_from_token(admin),
    )
    if body.category is InvalidationCategory.ALL:
        return CacheMutationResponse(success=True, message="All cache cleared")
    return CacheMutationResponse(
        success=True,
        message=f"Invalidated {deleted} {body.category.value} cache entries",
        deleted=deleted,
    )


@router.delete("", response_model=CacheMutationResponse)
async def flush_cache(
    cache: CacheDep,
    admin: AdminUser,
    confirm: Annotated[bool, Query()] = False,
) -> CacheMutationResponse:
    """Clear the whole cache; requires ``?confirm=true``."""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Confirmation required - add ?confirm=true to the request",
        )
    success = await cache.flush_all()
    logger.warning("Cache flush requested by admin %s", user_id_from_token(admin))
    return CacheMutationResponse(
        success=success,
        message="All cache cleared" if success else "Failed to clear cache",
    )
