"""TTL policy per cache category (seconds)."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType


class CacheCategory(StrEnum):
    """Closed set of cache categories; every one has exactly one TTL."""

    FLIGHT_SEARCH = "flight_search"
    FLIGHT_SEARCH_FALLBACK = "flight_search_fallback"
    AIRPORT_DATA = "airport_data"
    POPULAR_AIRPORTS = "popular_airports"
    USER_SESSION = "user_session"
    PRICE_ALERT = "price_alert"
    PROVIDER_HEALTH = "provider_health"
    BOOKING_DETAILS = "booking_details"
    PROMO_CODE = "promo_code"
    SYSTEM_CONFIG = "system_config"
    IDEMPOTENCY = "idempotency"
    RATE_LIMIT_SHORT = "rate_limit_short"
    RATE_LIMIT_MEDIUM = "rate_limit_medium"
    RATE_LIMIT_LONG = "rate_limit_long"


TTL_POLICY: MappingProxyType[CacheCategory, int] = MappingProxyType(
    {
        CacheCategory.FLIGHT_SEARCH: 300,  # 5 min
        CacheCategory.FLIGHT_SEARCH_FALLBACK: 60,  # 1 min
        CacheCategory.AIRPORT_DATA: 3600,  # 1 hour
        CacheCategory.POPULAR_AIRPORTS: 86400,  # 24 hours
        CacheCategory.USER_SESSION: 7200,  # 2 hours
        CacheCategory.PRICE_ALERT: 1800,  # 30 min
        CacheCategory.PROVIDER_HEALTH: 300,  # 5 min
        CacheCategory.BOOKING_DETAILS: 600,  # 10 min
        CacheCategory.PROMO_CODE: 1800,  # 30 min
        CacheCategory.SYSTEM_CONFIG: 3600,  # 1 hour
        CacheCategory.IDEMPOTENCY: 86400,  # 24 hours
        CacheCategory.RATE_LIMIT_SHORT: 60,  # 1 min
        CacheCategory.RATE_LIMIT_MEDIUM: 1800,  # 30 min
        CacheCategory.RATE_LIMIT_LONG: 86400,  # 24 hours
    }
)

_missing = set(CacheCategory) - set(TTL_POLICY)
if _missing:
    msg = f"TTL policy has no entry for: {sorted(_missing)}"
    raise RuntimeError(msg)


def ttl_for(category: CacheCategory) -> int:
    """Return the TTL for *category*."""
    return TTL_POLICY[category]
