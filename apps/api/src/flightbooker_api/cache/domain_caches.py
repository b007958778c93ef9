"""Typed cache helpers per domain object.

Each helper binds a key builder to its TTL category so call sites never pick
a TTL by hand.
"""

from __future__ import annotations

import abc
import logging
import time
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from . import cache_keys
from .cache_keys import CachePrefix, category_pattern
from .ttl import CacheCategory, ttl_for

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from flightbooker_core.schemas import SearchCriteria

    from .redis_client import CacheStore

logger = logging.getLogger(__name__)


class CachedFlightSearch(BaseModel):
    """Envelope stored under a flight-search key."""

    params: dict[str, Any]
    results: list[dict[str, Any]]
    provider: str
    timestamp: float = Field(default_factory=time.time)
    total_results: int = 0
    degraded: bool = False


def search_key_for(criteria: SearchCriteria) -> str:
    """Cache key for a validated search request."""
    return cache_keys.flight_search_key(
        criteria.origin,
        criteria.destination,
        criteria.departure_date.isoformat(),
        criteria.return_date.isoformat() if criteria.return_date else None,
        criteria.passengers.adults,
        criteria.passengers.children,
        criteria.cabin_class.value,
        criteria.passengers.infants,
        criteria.currency,
    )


class FlightCache:
    """Flight search results."""

    def __init__(self, store: CacheStore) -> None:
        self._store = store

    async def get_search(self, criteria: SearchCriteria) -> CachedFlightSearch | None:
        cached = await self._store.get(search_key_for(criteria))
        route = f"{criteria.origin} -> {criteria.destination}"
        if cached is None:
            logger.debug("Cache MISS: flight search %s", route)
            return None
        try:
            envelope = CachedFlightSearch.model_validate(cached)
        except ValueError:
            logger.warning("Discarding malformed cached search for %s", route)
            return None
        logger.debug("Cache HIT: flight search %s", route)
        return envelope

    async def set_search(
        self,
        criteria: SearchCriteria,
        results: list[dict[str, Any]],
        provider: str,
    ) -> bool:
        """Cache live provider results under the normal flight-search TTL."""
        return await self._store_envelope(
            criteria, results, provider, CacheCategory.FLIGHT_SEARCH, degraded=False
        )

    async def set_fallback(
        self,
        criteria: SearchCriteria,
        results: list[dict[str, Any]],
        provider: str,
    ) -> bool:
        """Cache degraded results under the shorter fallback TTL."""
        return await self._store_envelope(
            criteria,
            results,
            provider,
            CacheCategory.FLIGHT_SEARCH_FALLBACK,
            degraded=True,
        )

    async def _store_envelope(
        self,
        criteria: SearchCriteria,
        results: list[dict[str, Any]],
        provider: str,
        category: CacheCategory,
        *,
        degraded: bool,
    ) -> bool:
        envelope = CachedFlightSearch(
            params=criteria.model_dump(mode="json"),
            results=results,
            provider=provider,
            total_results=len(results),
            degraded=degraded,
        )
        ttl = ttl_for(category)
        stored = await self._store.set(
            search_key_for(criteria), envelope.model_dump(mode="json"), ttl
        )
        if stored:
            logger.info(
                "Cached flight search %s -> %s (%d results, TTL %ds)",
                criteria.origin,
                criteria.destination,
                len(results),
                ttl,
            )
        return stored

    async def invalidate_route(self, origin: str, destination: str) -> int:
        deleted = await self._store.delete_pattern(
            cache_keys.flight_route_pattern(origin, destination)
        )
        if deleted:
            logger.info(
                "Invalidated %d cached searches for %s -> %s",
                deleted,
                origin,
                destination,
            )
        return deleted

    async def invalidate_all(self) -> int:
        return await self._store.delete_pattern(
            category_pattern(CachePrefix.FLIGHT_SEARCH)
        )


class _KeyedCache(abc.ABC):
    """Get/set/invalidate for one key builder and one TTL category."""

    category: CacheCategory
    pattern: str

    def __init__(self, store: CacheStore) -> None:
        self._store = store

    @abc.abstractmethod
    def key(self, identifier: str) -> str:
        """Cache key for *identifier*."""

    async def get(self, identifier: str) -> Any | None:
        return await self._store.get(self.key(identifier))

    async def set(self, identifier: str, data: Any, ttl: int | None = None) -> bool:
        return await self._store.set(
            self.key(identifier), data, ttl or ttl_for(self.category)
        )

    async def invalidate(self, identifier: str) -> bool:
        return await self._store.delete(self.key(identifier))

    async def invalidate_all(self) -> int:
        return await self._store.delete_pattern(self.pattern)


class AirportCache(_KeyedCache):
    """Airport reference data and autocomplete results."""

    category = CacheCategory.AIRPORT_DATA
    pattern = category_pattern(CachePrefix.AIRPORT)

    def key(self, identifier: str) -> str:
        return cache_keys.airport_key(identifier)

    async def get_search(self, keyword: str) -> list[Any] | None:
        return await self._store.get(cache_keys.airport_search_key(keyword))

    async def set_search(self, keyword: str, results: list[Any]) -> bool:
        return await self._store.set(
            cache_keys.airport_search_key(keyword),
            results,
            ttl_for(CacheCategory.AIRPORT_DATA),
        )

    async def get_popular(self, region: str = "global") -> list[Any] | None:
        return await self._store.get(cache_keys.popular_airports_key(region))

    async def set_popular(self, airports: list[Any], region: str = "global") -> bool:
        return await self._store.set(
            cache_keys.popular_airports_key(region),
            airports,
            ttl_for(CacheCategory.POPULAR_AIRPORTS),
        )


class BookingCache(_KeyedCache):
    """Booking details by booking id."""

    category = CacheCategory.BOOKING_DETAILS
    pattern = category_pattern(CachePrefix.BOOKING)

    def key(self, identifier: str) -> str:
        return cache_keys.booking_key(identifier)


class SessionCache(_KeyedCache):
    """User sessions."""

    category = CacheCategory.USER_SESSION
    pattern = category_pattern(CachePrefix.SESSION)

    def key(self, identifier: str) -> str:
        return cache_keys.session_key(identifier)

    async def invalidate_user_sessions(self, user_id: str) -> int:
        return await self._store.delete_pattern(
            f"{CachePrefix.SESSION.value}:*{user_id}*"
        )


class PriceAlertCache(_KeyedCache):
    """Price alerts by alert id."""

    category = CacheCategory.PRICE_ALERT
    pattern = category_pattern(CachePrefix.PRICE_ALERT)

    def key(self, identifier: str) -> str:
        return cache_keys.price_alert_key(identifier)


class PromoCodeCache(_KeyedCache):
    """Promo code lookups (codes are case-insensitive)."""

    category = CacheCategory.PROMO_CODE
    pattern = category_pattern(CachePrefix.PROMO_CODE)

    def key(self, identifier: str) -> str:
        return cache_keys.promo_code_key(identifier)


class ProviderHealthCache(_KeyedCache):
    """Last observed health of each flight-inventory provider."""

    category = CacheCategory.PROVIDER_HEALTH
    pattern = f"{CachePrefix.PROVIDER.value}:health:*"

    def key(self, identifier: str) -> str:
        return cache_keys.provider_health_key(identifier)

    async def record(self, provider: str, *, healthy: bool, detail: str = "") -> bool:
        return await self.set(
            provider,
            {"healthy": healthy, "detail": detail, "checked_at": time.time()},
        )


class CacheWarmer:
    """Pre-populates caches from caller-supplied loaders."""

    def __init__(self, store: CacheStore) -> None:
        self._airports = AirportCache(store)

    async def warm_airports(
        self,
        codes: Iterable[str],
        loader: Callable[[str], Awaitable[Any | None]],
    ) -> int:
        """Load and cache each airport not already cached; returns how many."""
        warmed = 0
        for code in codes:
            if await self._airports.get(code) is not None:
                continue
            data = await loader(code)
            if data is not None and await self._airports.set(code, data):
                warmed += 1
        logger.info("Cache warming: %d airports loaded", warmed)
        return warmed

    async def warm_popular_airports(
        self,
        region: str,
        loader: Callable[[str], Awaitable[list[Any]]],
    ) -> bool:
        airports = await loader(region)
        return bool(airports) and await self._airports.set_popular(airports, region)
