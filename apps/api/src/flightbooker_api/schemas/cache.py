"""Admin cache-management schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from flightbooker_api.cache.invalidation import InvalidationCategory


class CacheStatsResponse(BaseModel):
    connected: bool
    total_keys: int
    memory_usage: str | None = None
    hits: int
    misses: int
    hit_rate: float


class CacheKeyResponse(BaseModel):
    """State of a single key; ``ttl`` is -1 without expiry, -2 when absent."""

    key: str
    exists: bool
    ttl: int
    value: Any | None = None


class CacheSetRequest(BaseModel):
    value: Any
    ttl: int | None = Field(default=None, ge=1)


class CacheIncrementRequest(BaseModel):
    key: str = Field(min_length=1)
    ttl: int | None = Field(default=None, ge=1)


class CacheIncrementResponse(BaseModel):
    key: str
    value: int


class DeletePatternRequest(BaseModel):
    pattern: str = Field(min_length=1)


class InvalidateRequest(BaseModel):
    category: InvalidationCategory


class CacheMutationResponse(BaseModel):
    success: bool
    message: str
    deleted: int | None = None
