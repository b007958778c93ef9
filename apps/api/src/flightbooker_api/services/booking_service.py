"""Booking creation and retrieval.

``create_booking`` collapses duplicate submissions into one persisted row:
the idempotency store answers the common retry case cheaply, and the unique
index on ``bookings.idempotency_key`` catches concurrent writers that both
passed the store check.
"""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from flightbooker_core.schemas import BookingStatus, PaymentStatus
from flightbooker_db.models.booking import IDEMPOTENCY_KEY_CONSTRAINT, Booking

from ..cache.domain_caches import BookingCache
from ..config import settings
from ..errors import BookingCreationError, BookingNotFoundError, BookingValidationError
from ..schemas.bookings import BookingResult
from .audit import (
    FAILED_BOOKING_ID,
    AuditAction,
    AuditEntry,
    AuditSink,
    LoggingAuditSink,
    record_audit,
)
from .booking_validation import BookingValidator
from .idempotency import (
    IdempotencyStore,
    derive_idempotency_key,
    scope_idempotency_key,
    utc_now,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from ..cache.redis_client import CacheStore
    from ..schemas.bookings import BookingRequest
    from .booking_validation import ValidationResult

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 6
CONFIRMATION_PREFIX = "CNF"
VERIFICATION_WARNING = "Booking requires additional verification"


def generate_booking_reference() -> str:
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))


def generate_confirmation_number() -> str:
    return CONFIRMATION_PREFIX + secrets.token_hex(6).upper()


class DuplicateIdempotencyKeyError(Exception):
    """Another booking already holds this idempotency key."""


class DuplicateReferenceError(Exception):
    """The generated booking reference or confirmation number is taken."""


class BookingRepository:
    """Reads and writes ``bookings`` rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, booking_id: uuid.UUID) -> Booking | None:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def get_by_idempotency_key(self, key: str) -> Booking | None:
        result = await self.db.execute(
            select(Booking).where(Booking.idempotency_key == key)
        )
        return result.scalar_one_or_none()

    async def create(self, booking: Booking) -> Booking:
        """Insert and commit *booking*.

        Raises :class:`DuplicateIdempotencyKeyError` or
        :class:`DuplicateReferenceError` on the matching unique violation;
        the session is rolled back in either case.
        """
        self.db.add(booking)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            message = str(exc.orig)
            if (
                IDEMPOTENCY_KEY_CONSTRAINT in message
                or "bookings.idempotency_key" in message
            ):
                raise DuplicateIdempotencyKeyError(booking.idempotency_key) from exc
            if "booking_reference" in message or "confirmation_number" in message:
                raise DuplicateReferenceError(booking.booking_reference) from exc
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        await self.db.refresh(booking)
        return booking


def _new_booking(
    request: BookingRequest,
    user_id: str,
    key: str,
    status: BookingStatus,
) -> Booking:
    return Booking(
        booking_reference=generate_booking_reference(),
        confirmation_number=generate_confirmation_number(),
        status=status,
        user_id=user_id,
        idempotency_key=key,
        flight_data=request.flight_data.model_dump(mode="json"),
        passengers=[p.model_dump(mode="json") for p in request.passengers],
        pricing=request.pricing.model_dump(mode="json"),
        contact_info=request.contact_info.model_dump(mode="json"),
        payment_info=request.payment_info.model_dump(mode="json"),
    )


def to_result(
    booking: Booking,
    *,
    replay: bool = False,
    risk_score: int | None = None,
    warnings: list[str] | None = None,
) -> BookingResult:
    return BookingResult(
        id=str(booking.id),
        booking_reference=booking.booking_reference,
        confirmation_number=booking.confirmation_number,
        status=booking.status,
        booking_date=booking.booking_date,
        flight=booking.flight_data,
        passengers=booking.passengers,
        pricing=booking.pricing,
        contact=booking.contact_info,
        payment=booking.payment_info,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        replay=replay,
        risk_score=risk_score,
        warnings=warnings or [],
    )


class BookingService:
    """Idempotent booking writes plus cached booking reads."""

    def __init__(
        self,
        db: AsyncSession,
        cache: CacheStore,
        *,
        validator: BookingValidator | None = None,
        audit_sink: AuditSink | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = BookingRepository(db)
        self.idempotency = IdempotencyStore(
            cache,
            window_seconds=settings.idempotency_window_seconds,
            clock=clock,
        )
        self._bookings = BookingCache(cache)
        self._validator = validator or BookingValidator()
        self._audit = audit_sink or LoggingAuditSink()

    async def create_booking(
        self,
        request: BookingRequest,
        user_id: str,
        idempotency_key: str | None = None,
        client_ip: str | None = None,
    ) -> BookingResult:
        """Create a booking, or return the one already made under the same key.

        Raises :class:`BookingValidationError` before touching any store and
        :class:`BookingCreationError` when persistence fails.
        """
        validation = self._validator.validate(request)
        if not validation.is_valid:
            await self._audit_failure(
                user_id, client_ip, validation.risk_score, {"errors": validation.errors}
            )
            raise BookingValidationError(validation.errors, validation.warnings)

        key = scope_idempotency_key(
            user_id, idempotency_key or derive_idempotency_key(request, user_id)
        )

        check = await self.idempotency.check(key)
        if check.is_duplicate and check.existing_booking_id is not None:
            existing = await self._load(check.existing_booking_id)
            if existing is not None:
                logger.info(
                    "Idempotent replay of booking %s (key %s...)",
                    existing.booking_reference,
                    key[:8],
                )
                return to_result(existing, replay=True)
            logger.warning(
                "Idempotency key %s... points at missing booking %s",
                key[:8],
                check.existing_booking_id,
            )

        try:
            booking = await self._persist(request, user_id, key, validation)
        except DuplicateIdempotencyKeyError:
            existing = await self.repository.get_by_idempotency_key(key)
            if existing is None:
                await self._audit_failure(
                    user_id, client_ip, validation.risk_score, {"reason": "conflict"}
                )
                msg = "Booking conflicted with a concurrent request"
                raise BookingCreationError(msg) from None
            logger.info(
                "Concurrent duplicate for key %s... resolved to booking %s",
                key[:8],
                existing.booking_reference,
            )
            await self.idempotency.record(key, str(existing.id))
            return to_result(existing, replay=True)
        except (DuplicateReferenceError, SQLAlchemyError) as exc:
            logger.exception("Booking creation failed for user %s", user_id)
            await self._audit_failure(
                user_id, client_ip, validation.risk_score, {"reason": str(exc)}
            )
            msg = "Booking could not be created"
            raise BookingCreationError(msg) from exc

        await self.idempotency.record(key, str(booking.id))

        warnings = list(validation.warnings)
        if validation.requires_additional_verification:
            warnings.append(VERIFICATION_WARNING)
        result = to_result(booking, risk_score=validation.risk_score, warnings=warnings)
        await self._cache_result(result, user_id)

        await record_audit(
            self._audit,
            AuditEntry.build(
                AuditAction.CREATE,
                user_id=user_id,
                booking_id=result.id,
                ip_address=client_ip,
                risk_score=validation.risk_score,
                details={
                    "booking_reference": result.booking_reference,
                    "total": request.pricing.total,
                    "currency": request.pricing.currency,
                    "passenger_count": len(request.passengers),
                },
            ),
        )
        logger.info(
            "Booking %s created for user %s", result.booking_reference, user_id
        )
        return result

    async def get_booking(
        self,
        booking_id: str,
        user_id: str | None = None,
        client_ip: str | None = None,
    ) -> BookingResult:
        """Fetch a booking, reading through the booking-details cache.

        With *user_id* set, bookings owned by someone else are reported as
        not found.
        """
        cached = await self._bookings.get(booking_id)
        result: BookingResult | None = None
        owner: str | None = None
        if isinstance(cached, dict) and "booking" in cached:
            try:
                result = BookingResult.model_validate(cached["booking"])
                owner = cached.get("owner")
            except ValueError:
                logger.warning("Discarding malformed cached booking %s", booking_id)

        if result is None:
            booking = await self._load(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            result = to_result(booking)
            owner = booking.user_id
            await self._cache_result(result, owner)

        if user_id is not None and owner != user_id:
            raise BookingNotFoundError(booking_id)

        await record_audit(
            self._audit,
            AuditEntry.build(
                AuditAction.VIEW,
                user_id=user_id or "anonymous",
                booking_id=result.id,
                ip_address=client_ip,
            ),
        )
        return result

    async def _persist(
        self,
        request: BookingRequest,
        user_id: str,
        key: str,
        validation: ValidationResult,
    ) -> Booking:
        confirmed = (
            request.payment_info.payment_status is PaymentStatus.COMPLETED
            and not validation.requires_additional_verification
        )
        status = BookingStatus.CONFIRMED if confirmed else BookingStatus.PENDING
        attempts = max(settings.booking_reference_attempts, 1)
        for attempt in range(1, attempts):
            try:
                return await self.repository.create(
                    _new_booking(request, user_id, key, status)
                )
            except DuplicateReferenceError:
                logger.warning(
                    "Booking reference collision, retrying (%d/%d)", attempt, attempts
                )
        return await self.repository.create(_new_booking(request, user_id, key, status))

    async def _load(self, booking_id: str) -> Booking | None:
        try:
            parsed = uuid.UUID(booking_id)
        except ValueError:
            return None
        return await self.repository.get_by_id(parsed)

    async def _cache_result(self, result: BookingResult, owner: str) -> None:
        await self._bookings.set(
            result.id,
            {"owner": owner, "booking": result.model_dump(mode="json")},
        )

    async def _audit_failure(
        self,
        user_id: str,
        client_ip: str | None,
        risk_score: int,
        details: dict,
    ) -> None:
        await record_audit(
            self._audit,
            AuditEntry.build(
                AuditAction.CREATE,
                user_id=user_id,
                booking_id=FAILED_BOOKING_ID,
                ip_address=client_ip,
                risk_score=risk_score,
                details=details,
            ),
        )
