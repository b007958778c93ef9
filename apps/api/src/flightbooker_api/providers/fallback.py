"""Synthetic offers served when the inventory provider is unavailable.

Results are seeded from the route, date and cabin so repeated requests during
an outage see the same approximate schedule.
"""

from __future__ import annotations

import hashlib
import random
from datetime import datetime, time, timedelta

from flightbooker_core.schemas import CabinClass, SearchCriteria

from ..schemas.search import FlightOffer

FALLBACK_SOURCE = "fallback"

# (base fare, spread) in USD for an economy seat
_ROUTE_PRICING: dict[str, tuple[int, int]] = {
    "JFK-LAX": (280, 200),
    "LAX-JFK": (280, 200),
    "ORD-SFO": (220, 150),
    "SFO-ORD": (220, 150),
    "MIA-JFK": (180, 120),
    "JFK-MIA": (180, 120),
    "LHR-JFK": (520, 300),
    "JFK-LHR": (520, 300),
    "ICN-NRT": (240, 140),
    "NRT-ICN": (240, 140),
}
_DEFAULT_PRICING = (350, 200)

_CABIN_MULTIPLIER: dict[CabinClass, float] = {
    CabinClass.ECONOMY: 1.0,
    CabinClass.PREMIUM_ECONOMY: 1.6,
    CabinClass.BUSINESS: 3.2,
    CabinClass.FIRST: 5.0,
}

_AIRLINES: list[tuple[str, str]] = [
    ("AA", "American Airlines"),
    ("DL", "Delta Air Lines"),
    ("UA", "United Airlines"),
    ("BA", "British Airways"),
    ("LH", "Lufthansa"),
    ("KE", "Korean Air"),
]


class FallbackFlightGenerator:
    """Builds a plausible, clearly-labelled offer list for a search."""

    def __init__(self, min_offers: int = 4, max_offers: int = 8) -> None:
        self._min = min_offers
        self._max = max_offers

    def generate(self, criteria: SearchCriteria) -> list[FlightOffer]:
        route = f"{criteria.origin}-{criteria.destination}"
        seed_material = (
            f"{route}:{criteria.departure_date.isoformat()}:{criteria.cabin_class}"
        )
        seed = int.from_bytes(hashlib.sha256(seed_material.encode()).digest()[:8])
        rng = random.Random(seed)

        base, spread = _ROUTE_PRICING.get(route, _DEFAULT_PRICING)
        multiplier = _CABIN_MULTIPLIER[criteria.cabin_class]
        count = rng.randint(self._min, self._max)

        offers: list[FlightOffer] = []
        for index in range(count):
            code, name = rng.choice(_AIRLINES)
            departure = datetime.combine(
                criteria.departure_date,
                time(hour=rng.randint(5, 22), minute=rng.choice((0, 15, 30, 45))),
            )
            stops = rng.choice((0, 0, 0, 1))
            duration = rng.randint(90, 420) + stops * 75
            offers.append(
                FlightOffer(
                    id=f"FB-{route}-{index + 1}",
                    airline_code=code,
                    airline_name=name,
                    flight_number=f"{code}{rng.randint(100, 9999)}",
                    origin=criteria.origin,
                    destination=criteria.destination,
                    departure_time=departure,
                    arrival_time=departure + timedelta(minutes=duration),
                    duration_minutes=duration,
                    stops=stops,
                    cabin_class=criteria.cabin_class.value,
                    price=round((base + rng.random() * spread) * multiplier, 2),
                    currency="USD",
                    seats_available=rng.randint(1, 40),
                    source=FALLBACK_SOURCE,
                )
            )
        offers.sort(key=lambda o: o.departure_time)
        return offers
