"""Payment intent correlation records and Cassandra schema.

The gateway owns the intent itself; the local record remembers which
(course, user, amount) an intent was created for, and the last status this
engine observed for it.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class PaymentStatus(str, Enum):
    """Status of a payment intent as seen by the engine."""

    PENDING = "pending"  # Created, no confirmation yet
    SUCCEEDED = "succeeded"  # Gateway confirmed the charge
    FAILED = "failed"  # Gateway reported failure or cancellation


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

PAYMENT_INTENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.payment_intents (
    intent_id TEXT PRIMARY KEY,
    course_id UUID,
    user_id UUID,
    amount BIGINT,
    currency TEXT,
    status TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Lookup table: latest intent for an enrollment pair
PAYMENT_INTENTS_BY_ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.payment_intents_by_enrollment (
    course_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    intent_id TEXT,
    PRIMARY KEY ((course_id, user_id), created_at, intent_id)
) WITH CLUSTERING ORDER BY (created_at DESC, intent_id ASC)
"""

PAYMENTS_TABLES_CQL = [
    PAYMENT_INTENTS_TABLE_CQL,
    PAYMENT_INTENTS_BY_ENROLLMENT_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True)
class PaymentIntentRecord:
    """Local correlation record for a gateway payment intent."""

    intent_id: str
    course_id: UUID
    user_id: UUID
    amount: int  # minor units
    currency: str
    status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "PaymentIntentRecord":
        """Create instance from Cassandra row."""
        return cls(
            intent_id=row.intent_id,
            course_id=row.course_id,
            user_id=row.user_id,
            amount=row.amount,
            currency=row.currency,
            status=PaymentStatus(row.status),
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )

    def with_status(self, status: PaymentStatus) -> "PaymentIntentRecord":
        """Copy of this record with a new status."""
        return replace(self, status=status, updated_at=datetime.now(UTC))

    def matches(self, course_id: UUID, user_id: UUID, amount: int) -> bool:
        """Check the intent is addressed to exactly this enrollment and amount."""
        return (
            self.course_id == course_id
            and self.user_id == user_id
            and self.amount == amount
        )
