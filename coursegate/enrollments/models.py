"""Enrollment states and Cassandra schema.

The enrolled set of a course is one row per member in course_enrollments,
keyed (course_id, user_id), so membership is a primary key lookup and a
member can never appear twice. Inserts use IF NOT EXISTS, which makes
``insert_if_absent`` a single atomic check-and-set.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class EnrollmentState(str, Enum):
    """Per (course, user) enrollment state."""

    NOT_ENROLLED = "not_enrolled"
    PAYMENT_REQUIRED = "payment_required"  # Paid course, use checkout
    PAYMENT_PENDING = "payment_pending"  # Intent created, not confirmed
    PAYMENT_FAILED = "payment_failed"  # Last intent failed, may retry
    ENROLLED = "enrolled"  # Terminal


class EnrollmentSource(str, Enum):
    """How the membership was granted."""

    FREE = "free"  # Free course, immediate enrollment
    PURCHASE = "purchase"  # Confirmed gateway payment


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_enrollments (
    course_id UUID,
    user_id UUID,
    source TEXT,
    payment_intent_id TEXT,
    enrolled_at TIMESTAMP,
    PRIMARY KEY ((course_id), user_id)
)
"""

ENROLLMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    course_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    COURSE_ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Results
# ==============================================================================


@dataclass(frozen=True)
class CheckoutDirective:
    """Tells the caller a paid course must go through checkout."""

    course_id: UUID
    amount: int  # minor units
    currency: str

    @property
    def checkout_path(self) -> str:
        return f"/v1/courses/{self.course_id}/checkout"


@dataclass(frozen=True)
class EnrollmentResult:
    """Outcome of an enrollment request."""

    course_id: UUID
    user_id: UUID
    state: EnrollmentState
    already_enrolled: bool = False
    checkout: CheckoutDirective | None = None

    @property
    def is_enrolled(self) -> bool:
        return self.state is EnrollmentState.ENROLLED
