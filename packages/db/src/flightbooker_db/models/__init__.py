"""SQLAlchemy ORM models for Flightbooker."""

from .base import Base, JSONDocument, TimestampMixin, UUIDPrimaryKeyMixin
from .booking import IDEMPOTENCY_KEY_CONSTRAINT, Booking

__all__ = [
    "IDEMPOTENCY_KEY_CONSTRAINT",
    "Base",
    "Booking",
    "JSONDocument",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
