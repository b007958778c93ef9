"""JSON-over-HTTP flight-inventory provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ..config import settings
from ..schemas.search import FlightOffer
from .base import FlightInventoryProvider, ProviderError, ProviderRateLimitedError

if TYPE_CHECKING:
    from flightbooker_core.schemas import SearchCriteria

logger = logging.getLogger(__name__)


class HttpInventoryProvider(FlightInventoryProvider):
    """Thin async wrapper around an inventory ``/v1/offers/search`` endpoint."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        name: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name or settings.provider_name
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.provider_base_url,
            headers={"apikey": api_key or settings.provider_api_key},
            timeout=httpx.Timeout(timeout or settings.provider_timeout),
            transport=transport,
        )

    async def search(self, criteria: SearchCriteria) -> list[FlightOffer]:
        params: dict[str, object] = {
            "origin": criteria.origin,
            "destination": criteria.destination,
            "departure_date": criteria.departure_date.isoformat(),
            "adults": criteria.passengers.adults,
            "children": criteria.passengers.children,
            "infants": criteria.passengers.infants,
            "cabin": criteria.cabin_class.value,
            "currency": criteria.currency,
        }
        if criteria.return_date is not None:
            params["return_date"] = criteria.return_date.isoformat()

        try:
            resp = await self._client.get("/v1/offers/search", params=params)
        except httpx.TimeoutException as exc:
            msg = f"{self.name} timed out"
            raise ProviderError(msg) from exc
        except httpx.TransportError as exc:
            msg = f"{self.name} unreachable: {exc}"
            raise ProviderError(msg) from exc

        if resp.status_code == 429:
            raise ProviderRateLimitedError(f"{self.name} rate limit exceeded")
        if resp.is_error:
            msg = f"{self.name} returned HTTP {resp.status_code}"
            raise ProviderError(msg, status_code=resp.status_code)

        try:
            payload = resp.json()
            items = payload.get("data", []) if isinstance(payload, dict) else None
            if not isinstance(items, list):
                msg = f"{self.name} returned an unexpected payload shape"
                raise ProviderError(msg)
            offers = [
                FlightOffer.model_validate({**item, "source": self.name})
                for item in items
            ]
        except (ValueError, TypeError, ValidationError) as exc:
            msg = f"{self.name} returned an unreadable payload"
            raise ProviderError(msg) from exc

        logger.debug("%s search returned %d offers", self.name, len(offers))
        return offers

    async def health_check(self) -> bool:
        try:
            resp = await self._client.get("/v1/health")
        except httpx.HTTPError:
            return False
        return resp.is_success

    async def close(self) -> None:
        """Shut down the underlying HTTPX client."""
        await self._client.aclose()
