"""Bulk invalidation of one cache category at a time.

These are administrative actions; callers are expected to log who invoked
them. Nothing on the request path calls them.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from .cache_keys import CachePrefix, category_pattern

if TYPE_CHECKING:
    from .redis_client import CacheStore

logger = logging.getLogger(__name__)


class InvalidationCategory(StrEnum):
    """Categories an operator can invalidate."""

    FLIGHTS = "flights"
    AIRPORTS = "airports"
    BOOKINGS = "bookings"
    SESSIONS = "sessions"
    PRICE_ALERTS = "price_alerts"
    PROMO_CODES = "promo_codes"
    PROVIDER_HEALTH = "provider_health"
    ALL = "all"


_CATEGORY_PATTERNS: dict[InvalidationCategory, str] = {
    InvalidationCategory.FLIGHTS: category_pattern(CachePrefix.FLIGHT_SEARCH),
    InvalidationCategory.AIRPORTS: category_pattern(CachePrefix.AIRPORT),
    InvalidationCategory.BOOKINGS: category_pattern(CachePrefix.BOOKING),
    InvalidationCategory.SESSIONS: category_pattern(CachePrefix.SESSION),
    InvalidationCategory.PRICE_ALERTS: category_pattern(CachePrefix.PRICE_ALERT),
    InvalidationCategory.PROMO_CODES: category_pattern(CachePrefix.PROMO_CODE),
    InvalidationCategory.PROVIDER_HEALTH: f"{CachePrefix.PROVIDER.value}:health:*",
}


def pattern_for(category: InvalidationCategory) -> str:
    """Glob covering every key of *category* (not defined for ``ALL``)."""
    return _CATEGORY_PATTERNS[category]


async def invalidate_category(
    store: CacheStore,
    category: InvalidationCategory,
) -> int:
    """Delete every entry of *category*; returns how many were removed.

    ``ALL`` flushes the whole cache and reports ``-1``.
    """
    if category is InvalidationCategory.ALL:
        await invalidate_all(store)
        return -1
    deleted = await store.delete_pattern(pattern_for(category))
    logger.info("Invalidated %d %s cache entries", deleted, category.value)
    return deleted


async def invalidate_all(store: CacheStore) -> bool:
    """Flush every cache entry."""
    return await store.flush_all()
