"""Enrollment state machine.

States per (course, user):

    not_enrolled --free--------------------------------> enrolled
    not_enrolled --paid--> payment_required --checkout--> payment_pending
    payment_pending --succeeded--> enrolled
    payment_pending --failed-----> payment_failed --checkout--> payment_pending

``enrolled`` is terminal. The free path is the only transition this service
performs; paid transitions belong to PaymentService.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.core.exceptions import NotFoundError
from coursegate.core.logging import get_logger
from coursegate.email import send_enrollment_confirmation
from coursegate.payments.models import PaymentStatus

from .models import (
    CheckoutDirective,
    EnrollmentResult,
    EnrollmentSource,
    EnrollmentState,
)


if TYPE_CHECKING:
    from coursegate.auth.models import User
    from coursegate.courses.models import Course
    from coursegate.email import Mailer
    from coursegate.store import EnrollmentStore


logger = get_logger(__name__)

_STATE_FROM_PAYMENT = {
    PaymentStatus.PENDING: EnrollmentState.PAYMENT_PENDING,
    PaymentStatus.FAILED: EnrollmentState.PAYMENT_FAILED,
    # Succeeded but not yet a member: the confirm write is still in flight
    PaymentStatus.SUCCEEDED: EnrollmentState.PAYMENT_PENDING,
}


class EnrollmentService:
    """Decides how a user joins a course."""

    def __init__(
        self,
        store: "EnrollmentStore",
        mailer: "Mailer | None" = None,
        currency: str = "cad",
    ):
        self.store = store
        self.mailer = mailer
        self.currency = currency

    async def _load(self, course_id: UUID, user_id: UUID) -> tuple["Course", "User"]:
        course = await self.store.find_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        user = await self.store.find_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return course, user

    async def request_enrollment(
        self, course_id: UUID, user_id: UUID
    ) -> EnrollmentResult:
        """Enroll a user, or tell them to check out.

        Safe to call any number of times, concurrently: the free path is a
        single atomic insert and the paid path mutates nothing.

        Raises:
            NotFoundError: If course or user doesn't exist
        """
        course, user = await self._load(course_id, user_id)

        if await self.store.is_member(course_id, user_id):
            return EnrollmentResult(
                course_id=course_id,
                user_id=user_id,
                state=EnrollmentState.ENROLLED,
                already_enrolled=True,
            )

        if course.requires_payment:
            logger.info(
                "enrollment_payment_required",
                course_id=str(course_id),
                user_id=str(user_id),
                amount=course.amount_minor,
            )
            return EnrollmentResult(
                course_id=course_id,
                user_id=user_id,
                state=EnrollmentState.PAYMENT_REQUIRED,
                checkout=CheckoutDirective(
                    course_id=course_id,
                    amount=course.amount_minor,
                    currency=self.currency,
                ),
            )

        inserted = await self.store.insert_if_absent(
            course_id, user_id, EnrollmentSource.FREE
        )

        if inserted:
            logger.info(
                "free_enrollment_created",
                course_id=str(course_id),
                user_id=str(user_id),
            )
            if self.mailer is not None:
                await send_enrollment_confirmation(self.mailer, user, course)

        return EnrollmentResult(
            course_id=course_id,
            user_id=user_id,
            state=EnrollmentState.ENROLLED,
            already_enrolled=not inserted,
        )

    async def get_enrollment_state(
        self, course_id: UUID, user_id: UUID
    ) -> EnrollmentState:
        """Current state of the pair, derived from membership and payments.

        Raises:
            NotFoundError: If the course doesn't exist
        """
        course = await self.store.find_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")

        if await self.store.is_member(course_id, user_id):
            return EnrollmentState.ENROLLED

        latest = await self.store.latest_payment_intent(course_id, user_id)
        if latest is not None:
            return _STATE_FROM_PAYMENT[latest.status]
        return EnrollmentState.NOT_ENROLLED

    async def list_enrolled_courses(self, user_id: UUID) -> tuple["Course", ...]:
        """Courses the user is enrolled in.

        Raises:
            NotFoundError: If the user doesn't exist
        """
        if await self.store.find_user(user_id) is None:
            raise NotFoundError("User not found")

        courses = []
        for course_id in await self.store.list_user_course_ids(user_id):
            course = await self.store.find_course(course_id)
            if course is not None:
                courses.append(course)
        return tuple(courses)
