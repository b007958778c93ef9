"""Cache key builders for consistent namespacing.

Keys have the shape ``{prefix}:{identifier}``. Location codes are uppercased,
free-text keywords lowercased, and the composite flight-search identifier is
lowercased as a whole so that equivalent searches share one entry.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum


class CachePrefix(StrEnum):
    """Key prefix per domain."""

    FLIGHT_SEARCH = "flight:search"
    AIRPORT = "airport"
    USER = "user"
    SESSION = "session"
    BOOKING = "booking"
    PRICE_ALERT = "price_alert"
    PROMO_CODE = "promo"
    PROVIDER = "provider"
    ANALYTICS = "analytics"
    RATE_LIMIT = "rate_limit"
    IDEMPOTENCY = "idempotency"


def build_key(prefix: CachePrefix, *parts: object) -> str:
    """Join *parts* under *prefix* with ``:``."""
    return ":".join([prefix.value, *(str(p) for p in parts)])


def category_pattern(prefix: CachePrefix) -> str:
    """Glob matching every key under *prefix*."""
    return f"{prefix.value}:*"


def flight_search_key(
    origin: str,
    destination: str,
    departure_date: str | date,
    return_date: str | date | None = None,
    adults: int = 1,
    children: int | None = 0,
    cabin_class: str | None = "economy",
    infants: int | None = 0,
    currency: str | None = "USD",
) -> str:
    """Build cache key for flight search results."""
    identifier = "-".join(
        [
            origin,
            destination,
            str(departure_date),
            str(return_date) if return_date else "oneway",
            str(adults),
            str(children or 0),
            cabin_class or "economy",
            str(infants or 0),
            currency or "USD",
        ]
    )
    return build_key(CachePrefix.FLIGHT_SEARCH, identifier.lower())


def flight_route_pattern(origin: str, destination: str) -> str:
    """Glob matching every cached search for one route."""
    route = f"{origin}-{destination}".lower()
    return f"{CachePrefix.FLIGHT_SEARCH.value}:{route}-*"


def airport_key(iata_code: str) -> str:
    return build_key(CachePrefix.AIRPORT, iata_code.upper())


def airport_search_key(keyword: str) -> str:
    return build_key(CachePrefix.AIRPORT, "search", keyword.lower())


def popular_airports_key(region: str = "global") -> str:
    return build_key(CachePrefix.AIRPORT, "popular", region.lower())


def user_key(user_id: str) -> str:
    return build_key(CachePrefix.USER, user_id)


def session_key(session_id: str) -> str:
    return build_key(CachePrefix.SESSION, session_id)


def booking_key(booking_id: str) -> str:
    return build_key(CachePrefix.BOOKING, booking_id)


def price_alert_key(alert_id: str) -> str:
    return build_key(CachePrefix.PRICE_ALERT, alert_id)


def provider_health_key(provider_name: str) -> str:
    return build_key(CachePrefix.PROVIDER, "health", provider_name)


def promo_code_key(code: str) -> str:
    return build_key(CachePrefix.PROMO_CODE, code.upper())


def rate_limit_key(identifier: str, window: str) -> str:
    """Build cache key for a rate-limit counter in an explicit time window."""
    return build_key(CachePrefix.RATE_LIMIT, identifier, window)


def idempotency_key(key: str) -> str:
    return build_key(CachePrefix.IDEMPOTENCY, key)
