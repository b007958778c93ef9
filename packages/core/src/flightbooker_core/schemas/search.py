"""Search criteria and passenger schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import CabinClass, TripType


class PassengerCount(BaseModel):
    """Number of passengers by type."""

    adults: int = Field(default=1, ge=1, le=9)
    children: int = Field(default=0, ge=0, le=8)
    infants: int = Field(default=0, ge=0, le=4)

    @model_validator(mode="after")
    def _validate_totals(self) -> PassengerCount:
        total = self.adults + self.children + self.infants
        if total > 9:
            msg = f"Total passengers ({total}) exceeds maximum of 9"
            raise ValueError(msg)
        if self.infants > self.adults:
            msg = "Each infant requires at least one adult"
            raise ValueError(msg)
        return self


class SearchCriteria(BaseModel):
    """Flight search parameters."""

    origin: str = Field(min_length=3, max_length=3, description="IATA airport code")
    destination: str = Field(
        min_length=3, max_length=3, description="IATA airport code"
    )
    departure_date: date
    return_date: date | None = None
    cabin_class: CabinClass = CabinClass.ECONOMY
    trip_type: TripType = TripType.ONE_WAY
    passengers: PassengerCount = Field(default_factory=PassengerCount)
    currency: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("origin", "destination")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _validate_route_and_dates(self) -> SearchCriteria:
        if self.origin == self.destination:
            msg = "Origin and destination airports must be different"
            raise ValueError(msg)
        if self.departure_date < date.today():
            msg = "Departure date cannot be in the past"
            raise ValueError(msg)
        if self.trip_type == TripType.ROUND_TRIP and self.return_date is None:
            msg = "return_date is required for round-trip"
            raise ValueError(msg)
        if self.return_date and self.return_date <= self.departure_date:
            msg = "return_date must be after departure_date"
            raise ValueError(msg)
        return self
