# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra-backed store.

Write paths:
- Enrollment: LWT insert into course_enrollments (IF NOT EXISTS), then
  the enrollments_by_user lookup row
- Payment intents: payment_intents + payment_intents_by_enrollment
- Messages: course_messages + messages_by_id + messages_by_receiver
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.auth.models import User
from coursegate.core.logging import get_logger
from coursegate.courses.models import Course
from coursegate.enrollments.models import EnrollmentSource
from coursegate.messaging.models import Message
from coursegate.payments.models import PaymentIntentRecord, PaymentStatus

from .base import MessagePredicate


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CassandraEnrollmentStore:
    """``EnrollmentStore`` over a cassandra-asyncio-driver session."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        # Courses / users (read only)
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)
        self._get_user = self.session.prepare(f"""
            SELECT id, email, first_name, role FROM {self.keyspace}.users
            WHERE id = ?
        """)

        # Enrolled sets
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_enrollments
            (course_id, user_id, source, payment_intent_id, enrolled_at)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._insert_enrollment_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_user
            (user_id, course_id, enrolled_at)
            VALUES (?, ?, ?)
        """)
        self._get_enrollment = self.session.prepare(f"""
            SELECT user_id FROM {self.keyspace}.course_enrollments
            WHERE course_id = ? AND user_id = ?
        """)
        self._get_course_members = self.session.prepare(f"""
            SELECT user_id FROM {self.keyspace}.course_enrollments
            WHERE course_id = ?
        """)
        self._get_user_courses = self.session.prepare(f"""
            SELECT course_id FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ?
        """)

        # Payment intents
        self._insert_intent = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.payment_intents
            (intent_id, course_id, user_id, amount, currency, status,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_intent_by_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.payment_intents_by_enrollment
            (course_id, user_id, created_at, intent_id)
            VALUES (?, ?, ?, ?)
        """)
        self._get_intent = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.payment_intents WHERE intent_id = ?
        """)
        self._update_intent_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.payment_intents
            SET status = ?, updated_at = ?
            WHERE intent_id = ?
        """)
        self._get_latest_intent_id = self.session.prepare(f"""
            SELECT intent_id FROM {self.keyspace}.payment_intents_by_enrollment
            WHERE course_id = ? AND user_id = ?
            LIMIT 1
        """)

        # Messages
        self._insert_course_message = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_messages
            (course_id, created_at, message_id, sender_id, receiver_id,
             content, is_read, pdf_url)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_message_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.messages_by_id
            (message_id, course_id, created_at, sender_id, receiver_id,
             content, is_read, pdf_url)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_message_by_receiver = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.messages_by_receiver
            (receiver_id, created_at, message_id, course_id, sender_id,
             content, is_read, pdf_url)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._get_message = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.messages_by_id WHERE message_id = ?
        """)
        self._get_course_messages = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_messages WHERE course_id = ?
        """)
        self._get_receiver_messages = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.messages_by_receiver
            WHERE receiver_id = ?
        """)
        self._mark_course_message_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.course_messages SET is_read = true
            WHERE course_id = ? AND created_at = ? AND message_id = ?
        """)
        self._mark_message_by_id_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.messages_by_id SET is_read = true
            WHERE message_id = ?
        """)
        self._mark_receiver_message_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.messages_by_receiver SET is_read = true
            WHERE receiver_id = ? AND created_at = ? AND message_id = ?
        """)

    # ==========================================================================
    # Courses / Users
    # ==========================================================================

    async def find_course(self, course_id: UUID) -> Course | None:
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def find_user(self, user_id: UUID) -> User | None:
        result = await self.session.aexecute(self._get_user, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    # ==========================================================================
    # Enrolled sets
    # ==========================================================================

    async def insert_if_absent(
        self,
        course_id: UUID,
        user_id: UUID,
        source: EnrollmentSource,
        payment_intent_id: str | None = None,
    ) -> bool:
        """Lightweight transaction insert; Paxos serializes concurrent callers."""
        now = datetime.now(UTC)
        result = await self.session.aexecute(
            self._insert_enrollment,
            [course_id, user_id, source.value, payment_intent_id, now],
        )
        if not result.was_applied:
            # Rewrite the lookup row in case an earlier attempt died after the LWT
            existing = result.one()
            enrolled_at = getattr(existing, "enrolled_at", None) or now
            await self.session.aexecute(
                self._insert_enrollment_by_user, [user_id, course_id, enrolled_at]
            )
            return False

        await self.session.aexecute(
            self._insert_enrollment_by_user, [user_id, course_id, now]
        )
        logger.debug(
            "enrollment_row_inserted",
            course_id=str(course_id),
            user_id=str(user_id),
            source=source.value,
        )
        return True

    async def is_member(self, course_id: UUID, user_id: UUID) -> bool:
        result = await self.session.aexecute(
            self._get_enrollment, [course_id, user_id]
        )
        return result.one() is not None

    async def get_enrolled_set(self, course_id: UUID) -> frozenset[UUID]:
        rows = await self.session.aexecute(self._get_course_members, [course_id])
        return frozenset(row.user_id for row in rows)

    async def list_user_course_ids(self, user_id: UUID) -> tuple[UUID, ...]:
        rows = await self.session.aexecute(self._get_user_courses, [user_id])
        return tuple(row.course_id for row in rows)

    # ==========================================================================
    # Payment intents
    # ==========================================================================

    async def save_payment_intent(self, record: PaymentIntentRecord) -> None:
        await self.session.aexecute(
            self._insert_intent,
            [
                record.intent_id,
                record.course_id,
                record.user_id,
                record.amount,
                record.currency,
                record.status.value,
                record.created_at,
                record.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_intent_by_enrollment,
            [record.course_id, record.user_id, record.created_at, record.intent_id],
        )

    async def find_payment_intent(self, intent_id: str) -> PaymentIntentRecord | None:
        result = await self.session.aexecute(self._get_intent, [intent_id])
        row = result.one()
        return PaymentIntentRecord.from_row(row) if row else None

    async def update_payment_intent_status(
        self, intent_id: str, status: PaymentStatus
    ) -> PaymentIntentRecord | None:
        record = await self.find_payment_intent(intent_id)
        if record is None:
            return None
        updated = record.with_status(status)
        await self.session.aexecute(
            self._update_intent_status,
            [updated.status.value, updated.updated_at, intent_id],
        )
        return updated

    async def latest_payment_intent(
        self, course_id: UUID, user_id: UUID
    ) -> PaymentIntentRecord | None:
        result = await self.session.aexecute(
            self._get_latest_intent_id, [course_id, user_id]
        )
        row = result.one()
        if row is None:
            return None
        return await self.find_payment_intent(row.intent_id)

    # ==========================================================================
    # Messages
    # ==========================================================================

    async def create_message(self, message: Message) -> None:
        await self.session.aexecute(
            self._insert_course_message,
            [
                message.course_id,
                message.timestamp,
                message.id,
                message.sender_id,
                message.receiver_id,
                message.content,
                message.is_read,
                message.pdf_url,
            ],
        )
        await self.session.aexecute(
            self._insert_message_by_id,
            [
                message.id,
                message.course_id,
                message.timestamp,
                message.sender_id,
                message.receiver_id,
                message.content,
                message.is_read,
                message.pdf_url,
            ],
        )
        await self.session.aexecute(
            self._insert_message_by_receiver,
            [
                message.receiver_id,
                message.timestamp,
                message.id,
                message.course_id,
                message.sender_id,
                message.content,
                message.is_read,
                message.pdf_url,
            ],
        )

    async def find_message(self, message_id: UUID) -> Message | None:
        result = await self.session.aexecute(self._get_message, [message_id])
        row = result.one()
        return Message.from_row(row) if row else None

    async def find_messages(
        self, course_id: UUID, predicate: MessagePredicate
    ) -> tuple[Message, ...]:
        # Clustering order already yields oldest first
        rows = await self.session.aexecute(self._get_course_messages, [course_id])
        messages = (Message.from_row(row) for row in rows)
        return tuple(m for m in messages if predicate(m))

    async def find_messages_for_receiver(
        self, receiver_id: UUID
    ) -> tuple[Message, ...]:
        rows = await self.session.aexecute(
            self._get_receiver_messages, [receiver_id]
        )
        return tuple(Message.from_row(row) for row in rows)

    async def mark_message_read(self, message: Message) -> Message:
        await self.session.aexecute(
            self._mark_course_message_read,
            [message.course_id, message.timestamp, message.id],
        )
        await self.session.aexecute(self._mark_message_by_id_read, [message.id])
        await self.session.aexecute(
            self._mark_receiver_message_read,
            [message.receiver_id, message.timestamp, message.id],
        )
        return message.mark_read()
