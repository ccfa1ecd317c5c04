"""Payment intent orchestrator.

Enrollment in a paid course is granted only after the gateway reports a
``succeeded`` intent whose metadata and amount match the local correlation
record. Creating an intent never enrolls anybody.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from coursegate.core.exceptions import (
    AlreadyEnrolledError,
    NotFoundError,
    ValidationError,
)
from coursegate.core.logging import get_logger
from coursegate.email import send_enrollment_confirmation
from coursegate.enrollments.models import EnrollmentSource

from .models import PaymentIntentRecord, PaymentStatus


if TYPE_CHECKING:
    from coursegate.email import Mailer
    from coursegate.store import EnrollmentStore

    from .gateway import GatewayIntent, PaymentGateway


logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    """What the client needs to complete payment. Holds no gateway credential."""

    payment_intent_id: str
    client_secret: str | None
    amount: int  # minor units
    currency: str


@dataclass(frozen=True)
class PaymentConfirmation:
    """Outcome of reconciling an intent with the gateway."""

    payment_intent_id: str
    course_id: UUID
    user_id: UUID
    status: PaymentStatus
    enrolled: bool


class PaymentService:
    """Creates gateway intents and reconciles their outcome."""

    def __init__(
        self,
        store: "EnrollmentStore",
        gateway: "PaymentGateway",
        mailer: "Mailer | None" = None,
        currency: str = "cad",
    ):
        self.store = store
        self.gateway = gateway
        self.mailer = mailer
        self.currency = currency

    # ==========================================================================
    # Checkout
    # ==========================================================================

    async def initiate_payment(self, course_id: UUID, user_id: UUID) -> CheckoutSession:
        """Create a gateway intent for the course price.

        The amount always comes from the stored course, never from the client.
        Each call creates a new intent; abandoned ones are left pending.

        Raises:
            NotFoundError: If course or user doesn't exist
            AlreadyEnrolledError: If the user is already a member
            ValidationError: If the course is free
            GatewayError: If the gateway rejects the request
        """
        course = await self.store.find_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        if await self.store.find_user(user_id) is None:
            raise NotFoundError("User not found")

        if await self.store.is_member(course_id, user_id):
            raise AlreadyEnrolledError()

        if not course.requires_payment:
            raise ValidationError("Course is free; enroll directly")

        amount = course.amount_minor
        intent = await self.gateway.create_intent(
            amount,
            self.currency,
            {"course_id": str(course_id), "user_id": str(user_id)},
        )

        await self.store.save_payment_intent(
            PaymentIntentRecord(
                intent_id=intent.id,
                course_id=course_id,
                user_id=user_id,
                amount=amount,
                currency=self.currency,
            )
        )

        logger.info(
            "payment_intent_created",
            payment_intent_id=intent.id,
            course_id=str(course_id),
            user_id=str(user_id),
            amount=amount,
            currency=self.currency,
        )

        return CheckoutSession(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=amount,
            currency=self.currency,
        )

    # ==========================================================================
    # Confirmation
    # ==========================================================================

    def _check_matches(self, record: PaymentIntentRecord, intent: "GatewayIntent") -> None:
        try:
            course_id = UUID(intent.metadata.get("course_id", ""))
            user_id = UUID(intent.metadata.get("user_id", ""))
        except ValueError:
            matched = False
        else:
            matched = (
                record.matches(course_id, user_id, intent.amount)
                and intent.currency == record.currency
            )

        if not matched:
            logger.warning(
                "payment_intent_mismatch",
                payment_intent_id=record.intent_id,
                expected_amount=record.amount,
                gateway_amount=intent.amount,
            )
            raise ValidationError("Payment intent does not match this enrollment")

    async def confirm_payment(
        self, payment_intent_id: str, actor_id: UUID | None = None
    ) -> PaymentConfirmation:
        """Reconcile an intent with the gateway; enroll on success.

        Idempotent: a second delivery of the same succeeded intent finds the
        member present and only re-marks the record. When ``actor_id`` is
        given, an intent owned by someone else is reported as missing.

        Raises:
            NotFoundError: If no local record exists for the intent, or it
                belongs to another user
            ValidationError: If gateway metadata/amount don't match the record
            GatewayError: If the gateway can't be reached
        """
        record = await self.store.find_payment_intent(payment_intent_id)
        if record is None:
            raise NotFoundError("Payment intent not found")
        if actor_id is not None and record.user_id != actor_id:
            logger.warning(
                "payment_confirm_not_owner",
                payment_intent_id=payment_intent_id,
                actor_id=str(actor_id),
            )
            raise NotFoundError("Payment intent not found")

        intent = await self.gateway.get_intent(payment_intent_id)
        self._check_matches(record, intent)

        if intent.status is PaymentStatus.SUCCEEDED:
            # Insert before marking, so redelivery repairs a crash in between
            inserted = await self.store.insert_if_absent(
                record.course_id,
                record.user_id,
                EnrollmentSource.PURCHASE,
                payment_intent_id=payment_intent_id,
            )
            await self.store.update_payment_intent_status(
                payment_intent_id, PaymentStatus.SUCCEEDED
            )
            if inserted:
                logger.info(
                    "paid_enrollment_created",
                    payment_intent_id=payment_intent_id,
                    course_id=str(record.course_id),
                    user_id=str(record.user_id),
                    amount=record.amount,
                )
                await self._notify(record)
            else:
                logger.info(
                    "payment_confirmation_repeated",
                    payment_intent_id=payment_intent_id,
                )
            enrolled = True

        elif intent.status is PaymentStatus.FAILED:
            await self.store.update_payment_intent_status(
                payment_intent_id, PaymentStatus.FAILED
            )
            logger.info(
                "payment_failed",
                payment_intent_id=payment_intent_id,
                gateway_status=intent.raw_status,
            )
            enrolled = await self.store.is_member(record.course_id, record.user_id)

        else:
            enrolled = await self.store.is_member(record.course_id, record.user_id)

        return PaymentConfirmation(
            payment_intent_id=payment_intent_id,
            course_id=record.course_id,
            user_id=record.user_id,
            status=intent.status,
            enrolled=enrolled,
        )

    async def _notify(self, record: PaymentIntentRecord) -> None:
        if self.mailer is None:
            return
        user = await self.store.find_user(record.user_id)
        course = await self.store.find_course(record.course_id)
        if user is None or course is None:
            return
        await send_enrollment_confirmation(self.mailer, user, course)

    # ==========================================================================
    # Webhooks
    # ==========================================================================

    async def handle_webhook(
        self, payload: bytes, signature: str
    ) -> PaymentConfirmation | None:
        """Verify and apply a gateway webhook.

        Returns:
            The confirmation for handled intent events, None for ignored
            events and intents with no local record

        Raises:
            ValidationError: If the signature is invalid
        """
        event = self.gateway.parse_webhook(payload, signature)

        if not event.is_handled:
            logger.debug("webhook_ignored", event_id=event.id, event_type=event.type)
            return None

        logger.info(
            "webhook_received",
            event_id=event.id,
            event_type=event.type,
            payment_intent_id=event.intent.id,
        )
        try:
            return await self.confirm_payment(event.intent.id)
        except NotFoundError:
            # Intent created outside this engine; acknowledge so it isn't redelivered
            logger.warning("webhook_intent_unknown", payment_intent_id=event.intent.id)
            return None
