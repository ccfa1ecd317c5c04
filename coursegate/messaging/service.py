"""Messaging authorization between students and course teachers.

Students may message a course's teachers once enrolled. Teachers may only
answer students who have written to them in that course first.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.core.exceptions import AuthorizationError, NotFoundError
from coursegate.core.logging import get_logger

from .models import Message, create_message


if TYPE_CHECKING:
    from coursegate.access.service import AccessGate
    from coursegate.auth.models import Actor
    from coursegate.courses.models import Course
    from coursegate.store import EnrollmentStore


logger = get_logger(__name__)


class MessagingService:
    """Authorizes and records course messages."""

    def __init__(self, store: "EnrollmentStore", access_gate: "AccessGate"):
        self.store = store
        self.access_gate = access_gate

    async def _get_course(self, course_id: UUID) -> "Course":
        course = await self.store.find_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def _has_written_to(
        self, course_id: UUID, student_id: UUID, teacher_id: UUID
    ) -> bool:
        previous = await self.store.find_messages(
            course_id,
            lambda m: m.sender_id == student_id and m.receiver_id == teacher_id,
        )
        return bool(previous)

    def _deny(
        self, reason: str, course_id: UUID, sender_id: UUID, receiver_id: UUID
    ) -> AuthorizationError:
        logger.info(
            "message_denied",
            reason=reason,
            course_id=str(course_id),
            sender_id=str(sender_id),
            receiver_id=str(receiver_id),
        )
        return AuthorizationError("You are not allowed to message this user")

    async def authorize_send(
        self,
        course_id: UUID,
        sender: "Actor",
        receiver_id: UUID,
        content: str,
        pdf_url: str | None = None,
    ) -> Message:
        """Check the sender may message the receiver, then store the message.

        Raises:
            NotFoundError: If the course doesn't exist
            AuthorizationError: If neither direction rule allows the message
            ValidationError: If content is empty
        """
        course = await self._get_course(course_id)
        sender_id = sender.actor_id

        if course.has_teacher(receiver_id):
            # Student to teacher
            if not await self.access_gate.is_enrolled(course_id, sender_id):
                raise self._deny("sender_not_enrolled", course_id, sender_id, receiver_id)
        elif course.has_teacher(sender_id):
            # Teacher to student
            if not await self._has_written_to(course_id, receiver_id, sender_id):
                raise self._deny("no_prior_message", course_id, sender_id, receiver_id)
        else:
            raise self._deny("not_course_teacher", course_id, sender_id, receiver_id)

        message = create_message(sender_id, receiver_id, course_id, content, pdf_url)
        await self.store.create_message(message)
        logger.info(
            "message_sent",
            message_id=str(message.id),
            course_id=str(course_id),
            sender_id=str(sender_id),
            receiver_id=str(receiver_id),
        )
        return message

    async def authorize_read(
        self, course_id: UUID, requester_id: UUID, peer_id: UUID
    ) -> tuple[Message, ...]:
        """Conversation between requester and peer, oldest first.

        Raises:
            NotFoundError: If the course doesn't exist
            AuthorizationError: If requester is neither enrolled nor a teacher
        """
        course = await self._get_course(course_id)

        if not course.has_teacher(requester_id) and not await self.access_gate.is_enrolled(
            course_id, requester_id
        ):
            raise self._deny("requester_not_enrolled", course_id, requester_id, peer_id)

        return await self.store.find_messages(
            course_id, lambda m: m.is_between(requester_id, peer_id)
        )

    async def reply_to_message(
        self,
        message_id: UUID,
        teacher: "Actor",
        content: str,
        pdf_url: str | None = None,
    ) -> Message:
        """Answer a message; the original sender becomes the receiver.

        Raises:
            NotFoundError: If the message doesn't exist
            AuthorizationError: If the teacher isn't allowed to answer
        """
        original = await self.store.find_message(message_id)
        if original is None:
            raise NotFoundError("Message not found")

        return await self.authorize_send(
            original.course_id, teacher, original.sender_id, content, pdf_url
        )

    async def list_teacher_inbox(self, teacher_id: UUID) -> tuple[Message, ...]:
        """Every message received by a teacher, newest first."""
        return await self.store.find_messages_for_receiver(teacher_id)

    async def mark_read(self, message_id: UUID, reader_id: UUID) -> Message:
        """Flag a message as read. Only its receiver may do so.

        Raises:
            NotFoundError: If the message doesn't exist
            AuthorizationError: If reader is not the receiver
        """
        message = await self.store.find_message(message_id)
        if message is None:
            raise NotFoundError("Message not found")

        if message.receiver_id != reader_id:
            raise AuthorizationError("Only the receiver can mark a message as read")

        if message.is_read:
            return message

        return await self.store.mark_message_read(message)
