"""Shared fixtures for API tests: in-process Redis, SQLite bookings DB, fakes."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

import fakeredis
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from flightbooker_api.cache.redis_client import CacheStore
from flightbooker_api.providers.base import (
    FlightInventoryProvider,
    ProviderError,
    ProviderRateLimitedError,
)
from flightbooker_api.schemas.bookings import (
    BookingRequest,
    ContactInfo,
    FlightSelection,
    PassengerDetails,
    PaymentInfo,
    Pricing,
)
from flightbooker_api.schemas.search import FlightOffer
from flightbooker_api.services.audit import AuditSink
from flightbooker_core.schemas import PaymentStatus, SearchCriteria
from flightbooker_db.models import Base

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from flightbooker_api.services.audit import AuditEntry


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@pytest.fixture
async def redis_client() -> AsyncGenerator[fakeredis.FakeAsyncRedis]:
    client = fakeredis.FakeAsyncRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )
    yield client
    await client.aclose()


@pytest.fixture
def cache_store(redis_client: fakeredis.FakeAsyncRedis) -> CacheStore:
    return CacheStore(redis_client, operation_timeout=1.0)


@pytest.fixture
def disabled_store() -> CacheStore:
    return CacheStore(None)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class RecordingAuditSink(AuditSink):
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    async def write(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


class BrokenAuditSink(AuditSink):
    async def write(self, entry: AuditEntry) -> None:
        msg = "audit log unavailable"
        raise RuntimeError(msg)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def broken_audit_sink() -> BrokenAuditSink:
    return BrokenAuditSink()


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


def make_offer(criteria: SearchCriteria, n: int = 1) -> FlightOffer:
    departure = datetime.combine(
        criteria.departure_date, time(8 + n), tzinfo=UTC
    )
    return FlightOffer(
        id=f"OFF-{n}",
        airline_code="AA",
        airline_name="American Airlines",
        flight_number=f"AA{100 + n}",
        origin=criteria.origin,
        destination=criteria.destination,
        departure_time=departure,
        arrival_time=departure + timedelta(hours=6),
        duration_minutes=360,
        cabin_class=criteria.cabin_class.value,
        price=299.0 + n,
        currency=criteria.currency,
        source="fake",
    )


class FakeProvider(FlightInventoryProvider):
    """Returns a fixed number of offers and counts calls."""

    name = "fake"

    def __init__(self, offers: int = 2) -> None:
        self.offers = offers
        self.calls = 0

    async def search(self, criteria: SearchCriteria) -> list[FlightOffer]:
        self.calls += 1
        return [make_offer(criteria, n) for n in range(1, self.offers + 1)]

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class RateLimitedProvider(FakeProvider):
    async def search(self, criteria: SearchCriteria) -> list[FlightOffer]:
        self.calls += 1
        raise ProviderRateLimitedError


class FailingProvider(FakeProvider):
    async def search(self, criteria: SearchCriteria) -> list[FlightOffer]:
        self.calls += 1
        msg = "upstream returned HTTP 503"
        raise ProviderError(msg, status_code=503)


@pytest.fixture
def future_date() -> date:
    """Return a date ~30 days from now (avoids past-date errors)."""
    return date.today() + timedelta(days=30)


@pytest.fixture
def criteria(future_date: date) -> SearchCriteria:
    return SearchCriteria(origin="jfk", destination="lax", departure_date=future_date)


# ---------------------------------------------------------------------------
# Booking requests
# ---------------------------------------------------------------------------


@pytest.fixture
def make_booking_request():
    """Factory fixture for valid booking requests."""

    def _make(
        *,
        flight_id: str = "OFF-1",
        total: float = 450.0,
        passengers: list[PassengerDetails] | None = None,
        email: str = "jane.doe@gmail.com",
        departure: datetime | None = None,
    ) -> BookingRequest:
        departure = departure or datetime.now(UTC) + timedelta(days=30)
        return BookingRequest(
            flight_data=FlightSelection(
                id=flight_id,
                airline_code="AA",
                flight_number="AA101",
                origin="JFK",
                destination="LAX",
                departure_time=departure,
                arrival_time=departure + timedelta(hours=6),
            ),
            passengers=passengers
            or [PassengerDetails(first_name="Jane", last_name="Doe")],
            contact_info=ContactInfo(email=email, phone="+1 212 555 0100"),
            pricing=Pricing(base_fare=total - 50, taxes=40, fees=10, total=total),
            payment_info=PaymentInfo(
                amount=total,
                last_four_digits="4242",
                cardholder_name="Jane Doe",
                payment_status=PaymentStatus.COMPLETED,
            ),
        )

    return _make


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def empty_provider() -> FakeProvider:
    return FakeProvider(offers=0)


@pytest.fixture
def rate_limited_provider() -> RateLimitedProvider:
    return RateLimitedProvider()


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()
