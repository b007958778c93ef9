"""Booking model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from flightbooker_core.schemas.enums import BookingStatus

from .base import Base, JSONDocument, TimestampMixin, UUIDPrimaryKeyMixin

IDEMPOTENCY_KEY_CONSTRAINT = "uq_bookings_idempotency_key"


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Bookings table - one row per confirmed or pending reservation.

    ``idempotency_key`` is scoped to the owner (``{user_id}:{key}``) and carries
    a unique constraint: a second insert under the same key fails at commit,
    which is how concurrent duplicate submissions are detected.
    """

    __tablename__ = "bookings"

    booking_reference: Mapped[str] = mapped_column(
        String(6), unique=True, nullable=False
    )
    confirmation_number: Mapped[str] = mapped_column(
        String(15), unique=True, nullable=False
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="bookingstatus"),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(200), nullable=False)
    flight_data: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    passengers: Mapped[list] = mapped_column(JSONDocument, nullable=False)
    pricing: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    contact_info: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    payment_info: Mapped[dict] = mapped_column(JSONDocument, nullable=False)
    booking_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index(
            IDEMPOTENCY_KEY_CONSTRAINT,
            "idempotency_key",
            unique=True,
        ),
        Index("ix_bookings_user_id", "user_id"),
        Index("ix_bookings_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.booking_reference} ({self.status.value})>"
