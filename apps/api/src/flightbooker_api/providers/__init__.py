"""Flight-inventory providers consumed by the search path."""

from .base import FlightInventoryProvider, ProviderError, ProviderRateLimitedError
from .fallback import FallbackFlightGenerator
from .http import HttpInventoryProvider

__all__ = [
    "FallbackFlightGenerator",
    "FlightInventoryProvider",
    "HttpInventoryProvider",
    "ProviderError",
    "ProviderRateLimitedError",
]
