"""Domain exceptions raised by the booking services."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for booking failures."""


class BookingValidationError(BookingError):
    """The booking request was rejected before any persistence happened."""

    def __init__(self, errors: list[str], warnings: list[str] | None = None) -> None:
        super().__init__("; ".join(errors) or "Booking validation failed")
        self.errors = errors
        self.warnings = warnings or []


class BookingCreationError(BookingError):
    """Persisting the booking failed; no idempotency record was written."""


class BookingNotFoundError(BookingError):
    """No booking exists for the given identifier."""
