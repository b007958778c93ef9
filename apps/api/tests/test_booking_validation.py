"""Tests for booking request validation and risk scoring."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from flightbooker_api.schemas.bookings import PassengerDetails
from flightbooker_api.services.booking_validation import BookingValidator
from flightbooker_core.schemas import PassengerType


def test_valid_request(make_booking_request):
    result = BookingValidator().validate(make_booking_request())
    assert result.is_valid
    assert result.errors == []
    assert result.risk_score == 0


def test_departure_in_the_past(make_booking_request):
    request = make_booking_request(departure=datetime.now(UTC) - timedelta(hours=1))
    result = BookingValidator().validate(request)
    assert not result.is_valid
    assert "flight_data.departure_time: date is in the past" in result.errors


def test_departure_too_soon(make_booking_request):
    request = make_booking_request(departure=datetime.now(UTC) + timedelta(hours=1))
    result = BookingValidator().validate(request)
    assert any("bookings close" in e for e in result.errors)


def test_departure_within_a_day_is_flagged(make_booking_request):
    request = make_booking_request(departure=datetime.now(UTC) + timedelta(hours=12))
    result = BookingValidator().validate(request)
    assert result.is_valid
    assert "Departure is within 24 hours" in result.warnings
    assert result.risk_score == 15


def test_naive_departure_is_treated_as_utc(make_booking_request):
    naive = datetime.now(UTC).replace(tzinfo=None) + timedelta(days=10)
    result = BookingValidator().validate(make_booking_request(departure=naive))
    assert result.is_valid


def test_total_must_match_breakdown(make_booking_request):
    request = make_booking_request()
    request.pricing.total = 999.0
    result = BookingValidator().validate(request)
    assert "pricing.total: does not match fare breakdown" in result.errors
    assert "payment_info.amount: does not match pricing total" in result.errors


def test_high_value_raises_risk(make_booking_request):
    result = BookingValidator().validate(make_booking_request(total=6000.0))
    assert result.is_valid
    assert result.risk_score == 30
    assert not result.requires_additional_verification


def test_stacked_risk_requires_verification(make_booking_request):
    request = make_booking_request(
        total=6000.0, departure=datetime.now(UTC) + timedelta(hours=12)
    )
    request.payment_info.cardholder_name = "Someone Else"
    result = BookingValidator().validate(request)
    assert result.risk_score == 65
    request.passengers[0].nationality = "US"
    request.passengers.append(
        PassengerDetails(first_name="John", last_name="Doe", nationality="GB")
    )
    assert BookingValidator().validate(request).requires_additional_verification


def test_passenger_rules(make_booking_request):
    today = date.today()
    passengers = [
        PassengerDetails(
            first_name="Baby",
            last_name="Doe",
            type=PassengerType.INFANT,
            date_of_birth=today - timedelta(days=365 * 3),
        ),
        PassengerDetails(first_name="J", last_name="Doe"),
    ]
    result = BookingValidator().validate(make_booking_request(passengers=passengers))
    assert "passengers[1].date_of_birth: infant must be under 2 years old" in (
        result.errors
    )
    assert "passengers[2].first_name: invalid name" in result.errors


def test_infants_need_adults(make_booking_request):
    passengers = [
        PassengerDetails(first_name="Jane", last_name="Doe"),
        PassengerDetails(first_name="Ann", last_name="Doe", type=PassengerType.INFANT),
        PassengerDetails(first_name="Bob", last_name="Doe", type=PassengerType.INFANT),
    ]
    result = BookingValidator().validate(make_booking_request(passengers=passengers))
    assert "passengers: each infant requires an adult" in result.errors


def test_too_many_passengers(make_booking_request):
    passengers = [
        PassengerDetails(first_name="Jane", last_name="Doe") for _ in range(10)
    ]
    result = BookingValidator().validate(make_booking_request(passengers=passengers))
    assert "passengers: maximum 9 passengers allowed" in result.errors


def test_disposable_email_rejected(make_booking_request):
    request = make_booking_request(email="jane@guerrillamail.com")
    result = BookingValidator().validate(request)
    assert "contact_info.email: disposable addresses not accepted" in result.errors


def test_pinned_clock(make_booking_request):
    validator = BookingValidator(now=datetime.now(UTC) + timedelta(days=60))
    result = validator.validate(make_booking_request())
    assert "flight_data.departure_time: date is in the past" in result.errors
