"""Core schemas for Flightbooker."""

from .enums import (
    BookingStatus,
    CabinClass,
    PassengerType,
    PaymentStatus,
    SearchProvenance,
    TripType,
)
from .search import PassengerCount, SearchCriteria

__all__ = [
    "BookingStatus",
    "CabinClass",
    "PassengerCount",
    "PassengerType",
    "PaymentStatus",
    "SearchCriteria",
    "SearchProvenance",
    "TripType",
]
