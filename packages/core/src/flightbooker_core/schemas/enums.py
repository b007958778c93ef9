"""Pydantic-compatible enums shared by the API and the database layer."""

from enum import StrEnum


class CabinClass(StrEnum):
    """Cabin class for the flight."""

    ECONOMY = "ECONOMY"
    PREMIUM_ECONOMY = "PREMIUM_ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class TripType(StrEnum):
    """Trip type."""

    ONE_WAY = "ONE_WAY"
    ROUND_TRIP = "ROUND_TRIP"


class PassengerType(StrEnum):
    """Passenger age bracket."""

    ADULT = "adult"
    CHILD = "child"
    INFANT = "infant"


class BookingStatus(StrEnum):
    """Lifecycle state of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(StrEnum):
    """Payment state reported by the payment collaborator."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SearchProvenance(StrEnum):
    """Where a flight search result set came from."""

    LIVE = "live"
    CACHED = "cached"
    DEGRADED_FALLBACK = "degraded-fallback"
