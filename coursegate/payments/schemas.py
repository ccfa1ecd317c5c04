"""Pydantic schemas for payment endpoints."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import PaymentStatus


class CheckoutResponse(BaseModel):
    """Client-side data to complete a payment. Never includes gateway keys."""

    model_config = ConfigDict(from_attributes=True)

    payment_intent_id: str
    client_secret: str | None = Field(
        None, description="Secret for the client payment widget"
    )
    amount: int = Field(..., description="Amount in minor units (cents)")
    currency: str


class PaymentConfirmationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_intent_id: str
    course_id: UUID
    user_id: UUID
    status: PaymentStatus
    enrolled: bool


class WebhookAckResponse(BaseModel):
    """Acknowledgement returned to the gateway."""

    received: bool = True
    handled: bool = False
