"""In-process store used by tests and ``STORE_BACKEND=memory`` development.

All mutations run without an ``await`` between check and write, so on a
single event loop every operation is atomic, including ``insert_if_absent``.
"""

from collections import defaultdict
from uuid import UUID

from coursegate.auth.models import User
from coursegate.core.logging import get_logger
from coursegate.courses.models import Course
from coursegate.enrollments.models import EnrollmentSource
from coursegate.messaging.models import Message
from coursegate.payments.models import PaymentIntentRecord, PaymentStatus

from .base import MessagePredicate


logger = get_logger(__name__)


class InMemoryEnrollmentStore:
    """Dictionary-backed implementation of ``EnrollmentStore``."""

    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._users: dict[UUID, User] = {}
        self._enrolled: dict[UUID, set[UUID]] = defaultdict(set)
        self._enrollment_sources: dict[tuple[UUID, UUID], EnrollmentSource] = {}
        self._intents: dict[str, PaymentIntentRecord] = {}
        self._messages: list[Message] = []

    # ==========================================================================
    # Seeding (courses and users are owned by other services)
    # ==========================================================================

    def save_course(self, course: Course) -> Course:
        self._courses[course.id] = course
        return course

    def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    # ==========================================================================
    # Courses / Users
    # ==========================================================================

    async def find_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def find_user(self, user_id: UUID) -> User | None:
        return self._users.get(user_id)

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
        members = self._enrolled[course_id]
        if user_id in members:
            return False
        members.add(user_id)
        self._enrollment_sources[(course_id, user_id)] = source
        logger.debug(
            "memory_enrollment_inserted",
            course_id=str(course_id),
            user_id=str(user_id),
            source=source.value,
            payment_intent_id=payment_intent_id,
        )
        return True

    async def is_member(self, course_id: UUID, user_id: UUID) -> bool:
        return user_id in self._enrolled.get(course_id, ())

    async def get_enrolled_set(self, course_id: UUID) -> frozenset[UUID]:
        return frozenset(self._enrolled.get(course_id, ()))

    async def list_user_course_ids(self, user_id: UUID) -> tuple[UUID, ...]:
        return tuple(
            course_id
            for course_id, members in self._enrolled.items()
            if user_id in members
        )

    # ==========================================================================
    # Payment intents
    # ==========================================================================

    async def save_payment_intent(self, record: PaymentIntentRecord) -> None:
        self._intents[record.intent_id] = record

    async def find_payment_intent(self, intent_id: str) -> PaymentIntentRecord | None:
        return self._intents.get(intent_id)

    async def update_payment_intent_status(
        self, intent_id: str, status: PaymentStatus
    ) -> PaymentIntentRecord | None:
        record = self._intents.get(intent_id)
        if record is None:
            return None
        updated = record.with_status(status)
        self._intents[intent_id] = updated
        return updated

    async def latest_payment_intent(
        self, course_id: UUID, user_id: UUID
    ) -> PaymentIntentRecord | None:
        candidates = [
            r
            for r in self._intents.values()
            if r.course_id == course_id and r.user_id == user_id
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.created_at)

    # ==========================================================================
    # Messages
    # ==========================================================================

    async def create_message(self, message: Message) -> None:
        self._messages.append(message)

    async def find_message(self, message_id: UUID) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    async def find_messages(
        self, course_id: UUID, predicate: MessagePredicate
    ) -> tuple[Message, ...]:
        matching = [
            m for m in self._messages if m.course_id == course_id and predicate(m)
        ]
        # sorted() is stable, so equal timestamps keep insertion order
        return tuple(sorted(matching, key=lambda m: m.timestamp))

    async def find_messages_for_receiver(
        self, receiver_id: UUID
    ) -> tuple[Message, ...]:
        received = [m for m in self._messages if m.receiver_id == receiver_id]
        return tuple(sorted(received, key=lambda m: m.timestamp, reverse=True))

    async def mark_message_read(self, message: Message) -> Message:
        updated = message.mark_read()
        self._messages = [updated if m.id == message.id else m for m in self._messages]
        return updated
