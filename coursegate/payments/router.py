"""Payment API endpoints.

- POST /v1/courses/{course_id}/checkout: create a payment intent
- POST /v1/payments/{payment_intent_id}/confirm: reconcile with the gateway
- POST /v1/payments/webhook: Stripe webhook receiver
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, Request

from coursegate.auth.dependencies import CurrentActor

from .dependencies import PaymentServiceDep
from .schemas import CheckoutResponse, PaymentConfirmationResponse, WebhookAckResponse


router = APIRouter(prefix="/v1", tags=["payments"])


@router.post(
    "/courses/{course_id}/checkout",
    response_model=CheckoutResponse,
    summary="Start checkout for a paid course",
)
async def checkout(
    course_id: UUID,
    actor: CurrentActor,
    service: PaymentServiceDep,
) -> CheckoutResponse:
    """Create a payment intent for the course price.

    Returns 409 if the caller is already enrolled.
    """
    session = await service.initiate_payment(course_id, actor.actor_id)
    return CheckoutResponse.model_validate(session)


@router.post(
    "/payments/{payment_intent_id}/confirm",
    response_model=PaymentConfirmationResponse,
    summary="Confirm a payment",
)
async def confirm(
    payment_intent_id: str,
    actor: CurrentActor,
    service: PaymentServiceDep,
) -> PaymentConfirmationResponse:
    """Re-read the intent from the gateway and enroll on success. Idempotent."""
    confirmation = await service.confirm_payment(
        payment_intent_id, actor_id=actor.actor_id
    )
    return PaymentConfirmationResponse.model_validate(confirmation)


@router.post(
    "/payments/webhook",
    response_model=WebhookAckResponse,
    summary="Payment gateway webhook",
    include_in_schema=False,
)
async def webhook(
    request: Request,
    service: PaymentServiceDep,
    stripe_signature: Annotated[str, Header(alias="Stripe-Signature")] = "",
) -> WebhookAckResponse:
    payload = await request.body()
    confirmation = await service.handle_webhook(payload, stripe_signature)
    return WebhookAckResponse(received=True, handled=confirmation is not None)
