"""Append-only audit trail for booking actions.

User ids and client IPs are stored as truncated SHA-256 digests only.
"""

from __future__ import annotations

import abc
import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("flightbooker.audit")

FAILED_BOOKING_ID = "FAILED"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    CANCEL = "CANCEL"
    VIEW = "VIEW"


def privacy_hash(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:16]


@dataclass(frozen=True)
class AuditEntry:
    action: AuditAction
    booking_id: str
    user_id_hash: str
    ip_address_hash: str | None = None
    risk_score: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def build(
        cls,
        action: AuditAction,
        *,
        user_id: str,
        booking_id: str,
        ip_address: str | None = None,
        risk_score: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEntry:
        return cls(
            action=action,
            booking_id=booking_id,
            user_id_hash=privacy_hash(user_id),
            ip_address_hash=privacy_hash(ip_address) if ip_address else None,
            risk_score=risk_score,
            details=details or {},
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


class AuditSink(abc.ABC):
    """Destination for audit entries."""

    @abc.abstractmethod
    async def write(self, entry: AuditEntry) -> None:
        """Append *entry*; may raise on failure."""


class LoggingAuditSink(AuditSink):
    """Writes one JSON line per entry to the ``flightbooker.audit`` logger."""

    async def write(self, entry: AuditEntry) -> None:
        audit_logger.info(json.dumps(entry.to_dict(), default=str))


async def record_audit(sink: AuditSink, entry: AuditEntry) -> None:
    """Write *entry*, logging and swallowing any sink failure."""
    try:
        await sink.write(entry)
    except Exception:
        logger.exception(
            "Failed to write %s audit entry for booking %s",
            entry.action.value,
            entry.booking_id,
        )
