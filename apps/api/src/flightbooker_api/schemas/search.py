"""Search request / response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from flightbooker_core.schemas import SearchCriteria, SearchProvenance


class FlightSearchRequest(SearchCriteria):
    """Inbound search parameters from the client."""


class FlightOffer(BaseModel):
    """One bookable flight returned by an inventory provider."""

    id: str
    airline_code: str
    airline_name: str
    flight_number: str
    origin: str
    destination: str
    departure_time: datetime
    arrival_time: datetime
    duration_minutes: int
    stops: int = 0
    cabin_class: str
    price: float
    currency: str
    seats_available: int | None = None
    source: str


class FlightSearchResponse(BaseModel):
    """Full search response envelope."""

    flights: list[FlightOffer]
    count: int
    provenance: SearchProvenance
    provider: str
    cached: bool = False
    warning: str | None = None
    search_time_ms: int = 0
