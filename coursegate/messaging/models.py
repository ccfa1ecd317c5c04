"""Course message models and Cassandra schema.

Messages are written to three tables (dual-write pattern, one per read path):
- course_messages: every message of a course, oldest first
- messages_by_id: point lookup for replies and read receipts
- messages_by_receiver: a teacher's inbox, newest first
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from coursegate.core.exceptions import ValidationError


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_MESSAGES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_messages (
    course_id UUID,
    created_at TIMESTAMP,
    message_id UUID,
    sender_id UUID,
    receiver_id UUID,
    content TEXT,
    is_read BOOLEAN,
    pdf_url TEXT,
    PRIMARY KEY ((course_id), created_at, message_id)
) WITH CLUSTERING ORDER BY (created_at ASC, message_id ASC)
"""

MESSAGES_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.messages_by_id (
    message_id UUID PRIMARY KEY,
    course_id UUID,
    created_at TIMESTAMP,
    sender_id UUID,
    receiver_id UUID,
    content TEXT,
    is_read BOOLEAN,
    pdf_url TEXT
)
"""

MESSAGES_BY_RECEIVER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.messages_by_receiver (
    receiver_id UUID,
    created_at TIMESTAMP,
    message_id UUID,
    course_id UUID,
    sender_id UUID,
    content TEXT,
    is_read BOOLEAN,
    pdf_url TEXT,
    PRIMARY KEY ((receiver_id), created_at, message_id)
) WITH CLUSTERING ORDER BY (created_at DESC, message_id ASC)
"""

MESSAGING_TABLES_CQL = [
    COURSE_MESSAGES_TABLE_CQL,
    MESSAGES_BY_ID_TABLE_CQL,
    MESSAGES_BY_RECEIVER_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True)
class Message:
    """A message between a student and a course teacher."""

    sender_id: UUID
    receiver_id: UUID
    course_id: UUID
    content: str
    id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_read: bool = False
    pdf_url: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Message":
        """Create instance from a row of any of the message tables."""
        return cls(
            id=row.message_id,
            sender_id=row.sender_id,
            receiver_id=row.receiver_id,
            course_id=row.course_id,
            content=row.content,
            timestamp=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            is_read=bool(row.is_read),
            pdf_url=row.pdf_url,
        )

    def is_between(self, party_a: UUID, party_b: UUID) -> bool:
        """Check if the message was exchanged between the two parties."""
        return {self.sender_id, self.receiver_id} == {party_a, party_b}

    def mark_read(self) -> "Message":
        """Copy of this message flagged as read."""
        return replace(self, is_read=True)


def create_message(
    sender_id: UUID,
    receiver_id: UUID,
    course_id: UUID,
    content: str,
    pdf_url: str | None = None,
) -> Message:
    """Build a new unread message, rejecting blank content."""
    text = content.strip() if content else ""
    if not text:
        raise ValidationError("Message content must not be empty")
    return Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        course_id=course_id,
        content=text,
        pdf_url=pdf_url,
    )
