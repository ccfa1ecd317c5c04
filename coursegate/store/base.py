"""Course/enrollment store contract.

The store is an external collaborator: durable courses, users, enrolled
sets, payment correlation records and messages. Adapters:

- CassandraEnrollmentStore: production, Cassandra lightweight transactions
- InMemoryEnrollmentStore: tests and local development
"""

from collections.abc import Callable
from typing import Protocol
from uuid import UUID

from coursegate.auth.models import User
from coursegate.courses.models import Course
from coursegate.enrollments.models import EnrollmentSource
from coursegate.messaging.models import Message
from coursegate.payments.models import PaymentIntentRecord, PaymentStatus


MessagePredicate = Callable[[Message], bool]


class EnrollmentStore(Protocol):
    """Persistence operations the engine depends on."""

    async def find_course(self, course_id: UUID) -> Course | None: ...

    async def find_user(self, user_id: UUID) -> User | None: ...

    async def insert_if_absent(
        self,
        course_id: UUID,
        user_id: UUID,
        source: EnrollmentSource,
        payment_intent_id: str | None = None,
    ) -> bool:
        """Atomically add user to the course's enrolled set.

        Returns:
            True if this call added the member, False if already present.
        """
        ...

    async def is_member(self, course_id: UUID, user_id: UUID) -> bool: ...

    async def get_enrolled_set(self, course_id: UUID) -> frozenset[UUID]: ...

    async def list_user_course_ids(self, user_id: UUID) -> tuple[UUID, ...]: ...

    async def save_payment_intent(self, record: PaymentIntentRecord) -> None: ...

    async def find_payment_intent(self, intent_id: str) -> PaymentIntentRecord | None: ...

    async def update_payment_intent_status(
        self, intent_id: str, status: PaymentStatus
    ) -> PaymentIntentRecord | None: ...

    async def latest_payment_intent(
        self, course_id: UUID, user_id: UUID
    ) -> PaymentIntentRecord | None: ...

    async def create_message(self, message: Message) -> None: ...

    async def find_message(self, message_id: UUID) -> Message | None: ...

    async def find_messages(
        self, course_id: UUID, predicate: MessagePredicate
    ) -> tuple[Message, ...]:
        """Messages of a course matching predicate, oldest first."""
        ...

    async def find_messages_for_receiver(
        self, receiver_id: UUID
    ) -> tuple[Message, ...]:
        """Messages received by a user, newest first."""
        ...

    async def mark_message_read(self, message: Message) -> Message: ...
