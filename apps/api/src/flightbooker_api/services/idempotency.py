"""Idempotency-key store for booking creation.

Maps an idempotency key to the booking it produced for a fixed window
(24 hours by default). Records live in the shared cache under
``idempotency:{key}``; Redis expiry is a backstop, the stored ``expires_at``
is authoritative and is checked on every read.

The store only ever holds fully recorded mappings. A key is recorded after
its booking is committed, so two concurrent requests may both see "not a
duplicate"; the unique constraint on ``bookings.idempotency_key`` catches the
second writer.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from ..cache.cache_keys import CachePrefix, category_pattern, idempotency_key
from ..cache.ttl import CacheCategory, ttl_for

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..cache.redis_client import CacheStore
    from ..schemas.bookings import BookingRequest

logger = logging.getLogger(__name__)

DERIVED_KEY_LENGTH = 32


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class IdempotencyCheck:
    is_duplicate: bool
    existing_booking_id: str | None = None


@dataclass(frozen=True, slots=True)
class IdempotencyRecord:
    booking_id: str
    created_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "booking_id": self.booking_id,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> IdempotencyRecord:
        return cls(
            booking_id=str(data["booking_id"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


def derive_idempotency_key(request: BookingRequest, user_id: str) -> str:
    """Deterministic key for requests that arrive without one.

    Same user, flight, passenger set, total and contact e-mail give the same
    key regardless of passenger order or name casing.
    """
    passengers = sorted(
        " ".join(
            [
                p.first_name.strip().lower(),
                p.last_name.strip().lower(),
                p.type.value,
                p.date_of_birth.isoformat() if p.date_of_birth else "",
            ]
        )
        for p in request.passengers
    )
    key_data = {
        "user_id": user_id,
        "flight_id": request.flight_data.id,
        "total": f"{request.pricing.total:.2f}",
        "currency": request.pricing.currency.upper(),
        "passengers": passengers,
        "contact_email": request.contact_info.email.lower(),
    }
    canonical = json.dumps(key_data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:DERIVED_KEY_LENGTH]


def scope_idempotency_key(user_id: str, key: str) -> str:
    """Per-user key under which records and bookings are stored.

    Two users sending the same ``Idempotency-Key`` never share a booking.
    """
    return f"{user_id}:{key}"


class IdempotencyStore:
    """Idempotency key -> booking id, with a fixed expiry window."""

    def __init__(
        self,
        cache: CacheStore,
        *,
        window_seconds: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._cache = cache
        self._window = timedelta(
            seconds=window_seconds or ttl_for(CacheCategory.IDEMPOTENCY)
        )
        self._clock = clock

    async def check(self, key: str) -> IdempotencyCheck:
        """Report whether *key* already maps to a booking.

        A cache outage reads as "not a duplicate".
        """
        cache_key = idempotency_key(key)
        raw = await self._cache.get(cache_key)
        if raw is None:
            return IdempotencyCheck(is_duplicate=False)

        record = self._parse(raw)
        if record is None or self._clock() > record.expires_at:
            await self._cache.delete(cache_key)
            return IdempotencyCheck(is_duplicate=False)

        return IdempotencyCheck(
            is_duplicate=True, existing_booking_id=record.booking_id
        )

    async def record(self, key: str, booking_id: str) -> bool:
        """Map *key* to *booking_id*; call only after the booking is committed."""
        now = self._clock()
        record = IdempotencyRecord(
            booking_id=booking_id,
            created_at=now,
            expires_at=now + self._window,
        )
        stored = await self._cache.set(
            idempotency_key(key),
            record.to_dict(),
            int(self._window.total_seconds()),
        )
        if not stored:
            logger.warning(
                "Idempotency key %s... not recorded for booking %s",
                key[:8],
                booking_id,
            )
        return stored

    async def purge_expired(self) -> int:
        """Delete expired or unreadable records; returns how many were removed."""
        keys = await self._cache.scan_keys(category_pattern(CachePrefix.IDEMPOTENCY))
        if not keys:
            return 0

        now = self._clock()
        purged = 0
        for cache_key, raw in zip(keys, await self._cache.get_many(keys), strict=True):
            if raw is None:
                continue
            record = self._parse(raw)
            if (record is None or now > record.expires_at) and await self._cache.delete(
                cache_key
            ):
                purged += 1

        if purged:
            logger.info("Purged %d expired idempotency records", purged)
        return purged

    @staticmethod
    def _parse(raw: object) -> IdempotencyRecord | None:
        try:
            return IdempotencyRecord.from_dict(raw)  # type: ignore[arg-type]
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed idempotency record")
            return None
