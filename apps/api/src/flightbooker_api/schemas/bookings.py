"""Booking request / response schemas."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from flightbooker_core.schemas import BookingStatus, PassengerType, PaymentStatus


class FlightSelection(BaseModel):
    """The offer the customer picked from search results."""

    id: str = Field(min_length=1, max_length=128)
    airline_code: str = Field(min_length=2, max_length=3)
    flight_number: str = Field(min_length=2, max_length=10)
    origin: str = Field(min_length=3, max_length=3)
    destination: str = Field(min_length=3, max_length=3)
    departure_time: datetime
    arrival_time: datetime | None = None
    cabin_class: str = "ECONOMY"


class PassengerDetails(BaseModel):
    first_name: str
    last_name: str
    type: PassengerType = PassengerType.ADULT
    date_of_birth: date | None = None
    passport_number: str | None = None
    nationality: str | None = Field(default=None, min_length=2, max_length=2)


class ContactInfo(BaseModel):
    email: EmailStr
    phone: str | None = None


class Pricing(BaseModel):
    base_fare: float = Field(ge=0)
    taxes: float = Field(default=0, ge=0)
    fees: float = Field(default=0, ge=0)
    total: float
    currency: str = Field(default="USD", min_length=3, max_length=3)


class PaymentInfo(BaseModel):
    """Payment summary; never carries a full card number."""

    method: str = "card"
    amount: float
    last_four_digits: str | None = Field(default=None, pattern=r"^\d{4}$")
    cardholder_name: str | None = None
    transaction_id: str | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING


class BookingRequest(BaseModel):
    """Inbound booking payload."""

    flight_data: FlightSelection
    passengers: list[PassengerDetails]
    contact_info: ContactInfo
    pricing: Pricing
    payment_info: PaymentInfo


class BookingResult(BaseModel):
    """A persisted booking, echoed back to the caller."""

    id: str
    booking_reference: str
    confirmation_number: str
    status: BookingStatus
    booking_date: datetime
    flight: dict
    passengers: list[dict]
    pricing: dict
    contact: dict
    payment: dict
    created_at: datetime
    updated_at: datetime
    replay: bool = False
    risk_score: int | None = None
    warnings: list[str] = Field(default_factory=list)
