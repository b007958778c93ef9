"""Abstract base class for flight-inventory providers."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flightbooker_core.schemas import SearchCriteria

    from ..schemas.search import FlightOffer


class ProviderError(Exception):
    """The provider could not answer the search."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderRateLimitedError(ProviderError):
    """The provider rejected the call because of its rate limit (HTTP 429)."""

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, status_code=429)


class FlightInventoryProvider(abc.ABC):
    """Base class that all inventory sources must implement."""

    name: str = "provider"

    @abc.abstractmethod
    async def search(self, criteria: SearchCriteria) -> list[FlightOffer]:
        """Offers matching *criteria*; raises :class:`ProviderError` on failure."""

    @abc.abstractmethod
    async def health_check(self) -> bool:
        """Return True if the source is reachable."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release any held resources (HTTP clients, etc.)."""
