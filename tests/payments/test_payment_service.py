"""Tests for the payment intent orchestrator."""

from dataclasses import replace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from coursegate.core.exceptions import (
    AlreadyEnrolledError,
    GatewayError,
    NotFoundError,
    ValidationError,
)
from coursegate.enrollments.models import EnrollmentSource
from coursegate.payments.gateway import GatewayEvent
from coursegate.payments.models import PaymentStatus


class TestInitiatePayment:
    """Checkout creates a pending intent and never enrolls."""

    @pytest.mark.asyncio
    async def test_creates_intent_with_server_side_amount(
        self, payment_service, gateway, store, student, paid_course
    ) -> None:
        session = await payment_service.initiate_payment(paid_course.id, student.id)

        assert session.payment_intent_id == "pi_test_1"
        assert session.client_secret == "pi_test_1_secret_abc"
        assert session.amount == 4999
        assert session.currency == "cad"
        gateway.create_intent.assert_awaited_once_with(
            4999,
            "cad",
            {"course_id": str(paid_course.id), "user_id": str(student.id)},
        )

        record = await store.find_payment_intent("pi_test_1")
        assert record.status is PaymentStatus.PENDING
        assert record.amount == 4999
        assert await store.get_enrolled_set(paid_course.id) == frozenset()

    @pytest.mark.asyncio
    async def test_already_enrolled_never_calls_gateway(
        self, payment_service, gateway, store, student, paid_course
    ) -> None:
        """No double charge."""
        await store.insert_if_absent(paid_course.id, student.id, EnrollmentSource.PURCHASE)

        with pytest.raises(AlreadyEnrolledError):
            await payment_service.initiate_payment(paid_course.id, student.id)

        gateway.create_intent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_free_course_has_nothing_to_charge(
        self, payment_service, gateway, student, free_course
    ) -> None:
        with pytest.raises(ValidationError):
            await payment_service.initiate_payment(free_course.id, student.id)
        gateway.create_intent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_course(self, payment_service, student) -> None:
        with pytest.raises(NotFoundError):
            await payment_service.initiate_payment(uuid4(), student.id)

    @pytest.mark.asyncio
    async def test_unknown_user(self, payment_service, paid_course) -> None:
        with pytest.raises(NotFoundError):
            await payment_service.initiate_payment(paid_course.id, uuid4())

    @pytest.mark.asyncio
    async def test_gateway_error_propagates_without_record(
        self, payment_service, gateway, store, student, paid_course
    ) -> None:
        gateway.create_intent.side_effect = GatewayError("card network down")

        with pytest.raises(GatewayError):
            await payment_service.initiate_payment(paid_course.id, student.id)

        assert await store.latest_payment_intent(paid_course.id, student.id) is None


class TestConfirmPayment:
    """Reconciliation against the gateway's reported status."""

    @pytest.mark.asyncio
    async def test_succeeded_enrolls(
        self, payment_service, gateway, store, mailer, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED
        )

        confirmation = await payment_service.confirm_payment("pi_test_1")

        assert confirmation.status is PaymentStatus.SUCCEEDED
        assert confirmation.enrolled is True
        assert await store.get_enrolled_set(paid_course.id) == frozenset({student.id})
        record = await store.find_payment_intent("pi_test_1")
        assert record.status is PaymentStatus.SUCCEEDED
        assert len(mailer.sent) == 1

    @pytest.mark.asyncio
    async def test_duplicate_success_delivery_enrolls_once(
        self, payment_service, gateway, store, mailer, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED
        )

        first = await payment_service.confirm_payment("pi_test_1")
        second = await payment_service.confirm_payment("pi_test_1")

        assert first.enrolled and second.enrolled
        assert await store.get_enrolled_set(paid_course.id) == frozenset({student.id})
        assert len(mailer.sent) == 1

    @pytest.mark.asyncio
    async def test_failed_payment_leaves_set_unchanged_and_allows_retry(
        self, payment_service, gateway, store, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.FAILED
        )

        confirmation = await payment_service.confirm_payment("pi_test_1")

        assert confirmation.status is PaymentStatus.FAILED
        assert confirmation.enrolled is False
        assert await store.get_enrolled_set(paid_course.id) == frozenset()
        assert (await store.find_payment_intent("pi_test_1")).status is PaymentStatus.FAILED

        gateway.create_intent.return_value = make_intent(
            paid_course.id, student.id, intent_id="pi_test_2"
        )
        retry = await payment_service.initiate_payment(paid_course.id, student.id)
        assert retry.payment_intent_id == "pi_test_2"
        assert gateway.create_intent.await_count == 2

    @pytest.mark.asyncio
    async def test_pending_changes_nothing(
        self, payment_service, store, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)

        confirmation = await payment_service.confirm_payment("pi_test_1")

        assert confirmation.status is PaymentStatus.PENDING
        assert confirmation.enrolled is False
        assert (await store.find_payment_intent("pi_test_1")).status is PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_intent(self, payment_service, gateway) -> None:
        with pytest.raises(NotFoundError):
            await payment_service.confirm_payment("pi_unknown")
        gateway.get_intent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_intent_not_reconciled(
        self,
        payment_service,
        gateway,
        store,
        mailer,
        make_intent,
        student,
        other_student,
        paid_course,
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED
        )

        with pytest.raises(NotFoundError):
            await payment_service.confirm_payment("pi_test_1", actor_id=other_student.id)

        gateway.get_intent.assert_not_awaited()
        assert await store.get_enrolled_set(paid_course.id) == frozenset()
        assert (await store.find_payment_intent("pi_test_1")).status is PaymentStatus.PENDING
        assert mailer.sent == []

    @pytest.mark.asyncio
    async def test_amount_mismatch_rejected(
        self, payment_service, gateway, store, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED, amount=100
        )

        with pytest.raises(ValidationError):
            await payment_service.confirm_payment("pi_test_1")

        assert await store.get_enrolled_set(paid_course.id) == frozenset()
        assert (await store.find_payment_intent("pi_test_1")).status is PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_metadata_mismatch_rejected(
        self, payment_service, gateway, store, make_intent, student, other_student, paid_course
    ) -> None:
        """An intent paid by someone else can't enroll this user."""
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, other_student.id, PaymentStatus.SUCCEEDED
        )

        with pytest.raises(ValidationError):
            await payment_service.confirm_payment("pi_test_1")

        assert await store.get_enrolled_set(paid_course.id) == frozenset()

    @pytest.mark.asyncio
    async def test_missing_metadata_rejected(
        self, payment_service, gateway, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        intent = make_intent(paid_course.id, student.id, PaymentStatus.SUCCEEDED)
        gateway.get_intent.return_value = replace(intent, metadata={})

        with pytest.raises(ValidationError):
            await payment_service.confirm_payment("pi_test_1")

    @pytest.mark.asyncio
    async def test_redelivery_repairs_missing_status_update(
        self, payment_service, gateway, store, make_intent, student, paid_course
    ) -> None:
        """Member inserted but record still pending: confirm marks it succeeded."""
        await payment_service.initiate_payment(paid_course.id, student.id)
        await store.insert_if_absent(
            paid_course.id, student.id, EnrollmentSource.PURCHASE, "pi_test_1"
        )
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED
        )

        confirmation = await payment_service.confirm_payment("pi_test_1")

        assert confirmation.enrolled
        assert (await store.find_payment_intent("pi_test_1")).status is PaymentStatus.SUCCEEDED


class TestWebhook:
    @pytest.mark.asyncio
    async def test_succeeded_event_confirms(
        self, payment_service, gateway, store, make_intent, student, paid_course
    ) -> None:
        await payment_service.initiate_payment(paid_course.id, student.id)
        succeeded = make_intent(paid_course.id, student.id, PaymentStatus.SUCCEEDED)
        gateway.get_intent.return_value = succeeded
        gateway.parse_webhook.return_value = GatewayEvent(
            id="evt_1", type="payment_intent.succeeded", intent=succeeded
        )

        confirmation = await payment_service.handle_webhook(b"{}", "t=1,v1=abc")

        assert confirmation is not None
        assert confirmation.enrolled
        gateway.parse_webhook.assert_called_once_with(b"{}", "t=1,v1=abc")
        assert await store.is_member(paid_course.id, student.id)

    @pytest.mark.asyncio
    async def test_unrelated_event_ignored(self, payment_service, gateway) -> None:
        gateway.parse_webhook.return_value = GatewayEvent(id="evt_2", type="customer.created")

        assert await payment_service.handle_webhook(b"{}", "sig") is None
        gateway.get_intent.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_intent_acknowledged(
        self, payment_service, gateway, make_intent, student, paid_course
    ) -> None:
        foreign = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED, intent_id="pi_foreign"
        )
        gateway.parse_webhook.return_value = GatewayEvent(
            id="evt_3", type="payment_intent.succeeded", intent=foreign
        )

        assert await payment_service.handle_webhook(b"{}", "sig") is None

    @pytest.mark.asyncio
    async def test_invalid_signature_raises(self, payment_service, gateway) -> None:
        gateway.parse_webhook.side_effect = ValidationError("Invalid webhook signature")

        with pytest.raises(ValidationError):
            await payment_service.handle_webhook(b"{}", "bad")


class TestNotification:
    @pytest.mark.asyncio
    async def test_mailer_error_does_not_undo_enrollment(
        self, payment_service, gateway, store, make_intent, student, paid_course
    ) -> None:
        payment_service.mailer = AsyncMock()
        payment_service.mailer.send = AsyncMock(side_effect=RuntimeError("quota"))
        await payment_service.initiate_payment(paid_course.id, student.id)
        gateway.get_intent.return_value = make_intent(
            paid_course.id, student.id, PaymentStatus.SUCCEEDED
        )

        confirmation = await payment_service.confirm_payment("pi_test_1")

        assert confirmation.enrolled
        assert await store.is_member(paid_course.id, student.id)
