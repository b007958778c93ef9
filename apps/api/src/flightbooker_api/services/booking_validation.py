"""Server-side validation and risk scoring of booking requests."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from flightbooker_core.schemas import PassengerType

if TYPE_CHECKING:
    from ..schemas.bookings import BookingRequest, PassengerDetails

MAX_PASSENGERS = 9
MIN_ADVANCE_HOURS = 2
MAX_ADVANCE_DAYS = 365
HIGH_VALUE_THRESHOLD = 5000.0
HIGH_RISK_SCORE = 70

_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-'.]{2,50}$")
_PASSPORT_PATTERN = re.compile(r"^[A-Z0-9]{6,12}$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{7,20}$")
_DISPOSABLE_DOMAINS = frozenset(
    {"temp-mail.org", "10minutemail.com", "guerrillamail.com"}
)


@dataclass
class ValidationResult:
    """Outcome of :meth:`BookingValidator.validate`."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    risk_score: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def requires_additional_verification(self) -> bool:
        return self.risk_score >= HIGH_RISK_SCORE


class BookingValidator:
    """Rejects malformed requests and scores the rest for fraud risk (0-100)."""

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now

    def validate(self, request: BookingRequest) -> ValidationResult:
        result = ValidationResult()
        now = self._now or datetime.now(UTC)

        self._check_passengers(request.passengers, now.date(), result)
        self._check_flight(request, now, result)
        self._check_amounts(request, result)
        self._check_contact(request, result)

        result.risk_score = min(result.risk_score, 100)
        return result

    @staticmethod
    def _check_passengers(
        passengers: list[PassengerDetails],
        today: date,
        result: ValidationResult,
    ) -> None:
        if not passengers:
            result.errors.append("passengers: at least one passenger is required")
            return
        if len(passengers) > MAX_PASSENGERS:
            result.errors.append(
                f"passengers: maximum {MAX_PASSENGERS} passengers allowed"
            )

        adults = sum(1 for p in passengers if p.type is PassengerType.ADULT)
        infants = sum(1 for p in passengers if p.type is PassengerType.INFANT)
        if adults == 0:
            result.errors.append("passengers: at least one adult is required")
        if infants > adults:
            result.errors.append("passengers: each infant requires an adult")

        for index, passenger in enumerate(passengers, start=1):
            field_prefix = f"passengers[{index}]"
            if not _NAME_PATTERN.match(passenger.first_name):
                result.errors.append(f"{field_prefix}.first_name: invalid name")
            if not _NAME_PATTERN.match(passenger.last_name):
                result.errors.append(f"{field_prefix}.last_name: invalid name")
            if passenger.passport_number and not _PASSPORT_PATTERN.match(
                passenger.passport_number
            ):
                result.errors.append(
                    f"{field_prefix}.passport_number: invalid passport number"
                )
            if passenger.date_of_birth is None:
                continue
            if passenger.date_of_birth > today:
                result.errors.append(
                    f"{field_prefix}.date_of_birth: cannot be in the future"
                )
                continue
            age = _age_on(passenger.date_of_birth, today)
            if passenger.type is PassengerType.CHILD and not 2 <= age < 12:
                result.errors.append(
                    f"{field_prefix}.date_of_birth: child must be 2-11 years old"
                )
            if passenger.type is PassengerType.INFANT and age >= 2:
                result.errors.append(
                    f"{field_prefix}.date_of_birth: infant must be under 2 years old"
                )

    @staticmethod
    def _check_flight(
        request: BookingRequest,
        now: datetime,
        result: ValidationResult,
    ) -> None:
        flight = request.flight_data
        if flight.origin.upper() == flight.destination.upper():
            result.errors.append("flight_data: origin and destination must differ")

        departure = _aware(flight.departure_time)
        if departure < now:
            result.errors.append("flight_data.departure_time: date is in the past")
        elif departure < now + timedelta(hours=MIN_ADVANCE_HOURS):
            result.errors.append(
                "flight_data.departure_time: bookings close "
                f"{MIN_ADVANCE_HOURS} hours before departure"
            )
        elif departure > now + timedelta(days=MAX_ADVANCE_DAYS):
            result.errors.append(
                "flight_data.departure_time: more than "
                f"{MAX_ADVANCE_DAYS} days in advance"
            )
        elif departure < now + timedelta(hours=24):
            result.warnings.append("Departure is within 24 hours")
            result.risk_score += 15

        if flight.arrival_time is not None and _aware(flight.arrival_time) <= departure:
            result.errors.append("flight_data.arrival_time: must be after departure")

        nationalities = {p.nationality for p in request.passengers if p.nationality}
        if len(nationalities) > 1:
            result.risk_score += 10

    @staticmethod
    def _check_amounts(request: BookingRequest, result: ValidationResult) -> None:
        pricing = request.pricing
        if pricing.total <= 0:
            result.errors.append("pricing.total: must be greater than zero")
            return
        expected = round(pricing.base_fare + pricing.taxes + pricing.fees, 2)
        if abs(expected - pricing.total) > 0.01:
            result.errors.append("pricing.total: does not match fare breakdown")
        if abs(request.payment_info.amount - pricing.total) > 0.01:
            result.errors.append("payment_info.amount: does not match pricing total")
        if pricing.total >= HIGH_VALUE_THRESHOLD:
            result.warnings.append("High-value transaction")
            result.risk_score += 30

    @staticmethod
    def _check_contact(request: BookingRequest, result: ValidationResult) -> None:
        contact = request.contact_info
        domain = contact.email.rsplit("@", 1)[-1].lower()
        if domain in _DISPOSABLE_DOMAINS:
            result.errors.append(
                "contact_info.email: disposable addresses not accepted"
            )
        if contact.phone and not _PHONE_PATTERN.match(contact.phone):
            result.errors.append("contact_info.phone: invalid phone number")

        holder = (request.payment_info.cardholder_name or "").split()
        if holder:
            surnames = {p.last_name.lower() for p in request.passengers}
            if holder[-1].lower() not in surnames:
                result.warnings.append("Cardholder is not a passenger")
                result.risk_score += 20


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _age_on(birth: date, today: date) -> int:
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years
