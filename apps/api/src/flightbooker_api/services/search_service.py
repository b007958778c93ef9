"""Flight search business logic."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from flightbooker_core.schemas import SearchProvenance

from ..cache.domain_caches import FlightCache, ProviderHealthCache
from ..config import settings
from ..providers.base import ProviderError, ProviderRateLimitedError
from ..providers.fallback import FALLBACK_SOURCE, FallbackFlightGenerator
from ..schemas.search import FlightOffer, FlightSearchResponse

if TYPE_CHECKING:
    from flightbooker_core.schemas import SearchCriteria

    from ..cache.redis_client import CacheStore
    from ..providers.base import FlightInventoryProvider

logger = logging.getLogger(__name__)

RATE_LIMITED_WARNING = (
    "Flight provider is rate limited; showing approximate schedules and fares."
)
UNAVAILABLE_WARNING = (
    "Flight provider is unavailable; showing approximate schedules and fares."
)


class SearchService:
    """Read-through cache in front of the flight-inventory provider."""

    def __init__(
        self,
        cache: CacheStore,
        provider: FlightInventoryProvider,
        fallback: FallbackFlightGenerator | None = None,
        *,
        provider_timeout: float | None = None,
    ) -> None:
        self._flights = FlightCache(cache)
        self._health = ProviderHealthCache(cache)
        self._provider = provider
        self._fallback = fallback or FallbackFlightGenerator()
        self._timeout = provider_timeout or settings.provider_timeout

    async def search_flights(self, criteria: SearchCriteria) -> FlightSearchResponse:
        """Serve from cache, else the provider, else the degraded fallback."""
        start = time.monotonic()

        cached = await self._flights.get_search(criteria)
        if cached is not None:
            flights = [FlightOffer.model_validate(f) for f in cached.results]
            return FlightSearchResponse(
                flights=flights,
                count=len(flights),
                provenance=(
                    SearchProvenance.DEGRADED_FALLBACK
                    if cached.degraded
                    else SearchProvenance.CACHED
                ),
                provider=cached.provider,
                cached=True,
                warning=RATE_LIMITED_WARNING if cached.degraded else None,
                search_time_ms=_elapsed_ms(start),
            )

        try:
            async with asyncio.timeout(self._timeout):
                flights = await self._provider.search(criteria)
        except ProviderRateLimitedError as exc:
            logger.warning("Provider %s rate limited: %s", self._provider.name, exc)
            await self._health.record(
                self._provider.name, healthy=False, detail=str(exc)
            )
            return await self._degraded(criteria, start, rate_limited=True)
        except (ProviderError, TimeoutError) as exc:
            detail = str(exc) or "timeout"
            logger.warning(
                "Provider %s failed, serving fallback: %s",
                self._provider.name,
                detail,
            )
            await self._health.record(self._provider.name, healthy=False, detail=detail)
            return await self._degraded(criteria, start, rate_limited=False)

        await self._health.record(self._provider.name, healthy=True)
        if flights:
            await self._flights.set_search(
                criteria,
                [f.model_dump(mode="json") for f in flights],
                self._provider.name,
            )

        return FlightSearchResponse(
            flights=flights,
            count=len(flights),
            provenance=SearchProvenance.LIVE,
            provider=self._provider.name,
            search_time_ms=_elapsed_ms(start),
        )

    async def _degraded(
        self,
        criteria: SearchCriteria,
        start: float,
        *,
        rate_limited: bool,
    ) -> FlightSearchResponse:
        flights = self._fallback.generate(criteria)
        # Fallbacks for non-rate-limit failures are never cached.
        if rate_limited:
            await self._flights.set_fallback(
                criteria,
                [f.model_dump(mode="json") for f in flights],
                FALLBACK_SOURCE,
            )
        return FlightSearchResponse(
            flights=flights,
            count=len(flights),
            provenance=SearchProvenance.DEGRADED_FALLBACK,
            provider=FALLBACK_SOURCE,
            warning=RATE_LIMITED_WARNING if rate_limited else UNAVAILABLE_WARNING,
            search_time_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
