"""Tests for the idempotency store and key derivation."""

from __future__ import annotations

from flightbooker_api.cache.cache_keys import idempotency_key
from flightbooker_api.schemas.bookings import PassengerDetails
from flightbooker_api.services.idempotency import (
    DERIVED_KEY_LENGTH,
    IdempotencyStore,
    derive_idempotency_key,
)
from flightbooker_core.schemas import PassengerType


async def test_unknown_key_is_not_a_duplicate(cache_store, clock):
    check = await IdempotencyStore(cache_store, clock=clock).check("idem-1")
    assert check.is_duplicate is False
    assert check.existing_booking_id is None


async def test_recorded_key_is_a_duplicate(cache_store, clock):
    store = IdempotencyStore(cache_store, clock=clock)
    assert await store.record("idem-1", "booking-1") is True

    check = await store.check("idem-1")

    assert check.is_duplicate is True
    assert check.existing_booking_id == "booking-1"


async def test_record_carries_window_ttl(cache_store, clock):
    await IdempotencyStore(cache_store, clock=clock).record("idem-1", "booking-1")
    assert 86000 < await cache_store.ttl(idempotency_key("idem-1")) <= 86400


async def test_found_just_inside_the_window(cache_store, clock):
    store = IdempotencyStore(cache_store, clock=clock)
    await store.record("idem-1", "booking-1")

    clock.advance(hours=23, minutes=59)

    assert (await store.check("idem-1")).is_duplicate is True


async def test_absent_just_after_the_window(cache_store, clock):
    store = IdempotencyStore(cache_store, clock=clock)
    await store.record("idem-1", "booking-1")

    clock.advance(hours=24, minutes=1)

    assert (await store.check("idem-1")).is_duplicate is False
    # lazily evicted on access
    assert await cache_store.exists(idempotency_key("idem-1")) is False


async def test_custom_window(cache_store, clock):
    store = IdempotencyStore(cache_store, window_seconds=60, clock=clock)
    await store.record("idem-1", "booking-1")
    clock.advance(seconds=61)
    assert (await store.check("idem-1")).is_duplicate is False


async def test_malformed_record_is_ignored(cache_store, clock):
    await cache_store.set(idempotency_key("idem-1"), {"booking_id": "b"})
    store = IdempotencyStore(cache_store, clock=clock)
    assert (await store.check("idem-1")).is_duplicate is False


async def test_lookup_failure_reads_as_not_duplicate(disabled_store, clock):
    store = IdempotencyStore(disabled_store, clock=clock)
    assert await store.record("idem-1", "booking-1") is False
    assert (await store.check("idem-1")).is_duplicate is False


async def test_purge_expired(cache_store, clock):
    store = IdempotencyStore(cache_store, clock=clock)
    await store.record("old-1", "b1")
    await store.record("old-2", "b2")
    clock.advance(hours=20)
    await store.record("fresh", "b3")
    await cache_store.set(idempotency_key("garbage"), "not a record")
    await cache_store.set("booking:b1", {"unrelated": True})

    clock.advance(hours=5)

    assert await store.purge_expired() == 3
    assert await cache_store.scan_keys("idempotency:*") == [idempotency_key("fresh")]
    assert await cache_store.exists("booking:b1") is True


async def test_purge_with_nothing_recorded(cache_store, clock):
    assert await IdempotencyStore(cache_store, clock=clock).purge_expired() == 0


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------


def test_derived_key_is_deterministic(make_booking_request):
    request = make_booking_request()
    key = derive_idempotency_key(request, "user-1")
    assert key == derive_idempotency_key(make_booking_request(), "user-1")
    assert len(key) == DERIVED_KEY_LENGTH
    assert all(c in "0123456789abcdef" for c in key)


def test_derived_key_ignores_passenger_order_and_case(make_booking_request):
    jane = PassengerDetails(first_name="Jane", last_name="Doe")
    john = PassengerDetails(first_name="John", last_name="Doe")
    shouty = PassengerDetails(first_name="JOHN", last_name="DOE")
    first = make_booking_request(passengers=[jane, john])
    second = make_booking_request(passengers=[shouty, jane])
    assert derive_idempotency_key(first, "user-1") == derive_idempotency_key(
        second, "user-1"
    )


def test_derived_key_changes_with_request_content(make_booking_request):
    base = derive_idempotency_key(make_booking_request(), "user-1")
    child = PassengerDetails(
        first_name="Tim", last_name="Doe", type=PassengerType.CHILD
    )
    jane = PassengerDetails(first_name="Jane", last_name="Doe")

    assert base != derive_idempotency_key(make_booking_request(), "user-2")
    assert base != derive_idempotency_key(make_booking_request(total=451.0), "user-1")
    assert base != derive_idempotency_key(
        make_booking_request(flight_id="OFF-2"), "user-1"
    )
    assert base != derive_idempotency_key(
        make_booking_request(passengers=[jane, child]), "user-1"
    )
    assert base != derive_idempotency_key(
        make_booking_request(email="john@gmail.com"), "user-1"
    )
