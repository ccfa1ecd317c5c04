"""Payment gateway port and the Stripe adapter.

The engine never trusts client-supplied amounts or statuses. Every status
it acts on is read back from the gateway, either through ``get_intent`` or
through a webhook event whose signature was verified.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import orjson
import stripe

from coursegate.core.exceptions import GatewayError, ValidationError
from coursegate.core.logging import get_logger

from .models import PaymentStatus


logger = get_logger(__name__)


# Webhook event types the engine acts on
INTENT_SUCCEEDED = "payment_intent.succeeded"
INTENT_FAILED = "payment_intent.payment_failed"
INTENT_CANCELED = "payment_intent.canceled"
HANDLED_EVENTS = frozenset({INTENT_SUCCEEDED, INTENT_FAILED, INTENT_CANCELED})


@dataclass(frozen=True)
class GatewayIntent:
    """Gateway-side view of a payment intent."""

    id: str
    status: PaymentStatus
    amount: int  # minor units
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    client_secret: str | None = None
    raw_status: str = ""


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook event."""

    id: str
    type: str
    intent: GatewayIntent | None = None

    @property
    def is_handled(self) -> bool:
        return self.type in HANDLED_EVENTS and self.intent is not None


class PaymentGateway(Protocol):
    """Operations the payment orchestrator needs from a gateway."""

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> GatewayIntent: ...

    async def get_intent(self, intent_id: str) -> GatewayIntent: ...

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent:
        """Verify the signature and decode the event.

        Raises:
            ValidationError: If the signature or payload is invalid
        """
        ...


# ==============================================================================
# Stripe
# ==============================================================================


def map_stripe_status(status: str, last_payment_error: Any = None) -> PaymentStatus:
    """Collapse Stripe's intent lifecycle into pending/succeeded/failed."""
    if status == "succeeded":
        return PaymentStatus.SUCCEEDED
    if status == "canceled":
        return PaymentStatus.FAILED
    # A declined attempt returns the intent to requires_payment_method
    if status == "requires_payment_method" and last_payment_error:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


def _field(obj: Any, name: str, default: Any = None) -> Any:
    try:
        return obj[name]
    except (KeyError, TypeError):
        return getattr(obj, name, default)


def _metadata(obj: Any) -> dict[str, str]:
    if not obj:
        return {}
    return {str(key): str(value) for key, value in obj.items()}


def intent_from_stripe(obj: Any) -> GatewayIntent:
    """Build a GatewayIntent from a stripe PaymentIntent object."""
    raw_status = _field(obj, "status", "")
    return GatewayIntent(
        id=_field(obj, "id"),
        status=map_stripe_status(raw_status, _field(obj, "last_payment_error")),
        amount=int(_field(obj, "amount", 0)),
        currency=str(_field(obj, "currency", "")).lower(),
        metadata=_metadata(_field(obj, "metadata")),
        client_secret=_field(obj, "client_secret"),
        raw_status=raw_status,
    )


class StripePaymentGateway:
    """Stripe PaymentIntents adapter.

    The stripe client is synchronous, so calls run in a worker thread. The
    API key is passed per request instead of through the module global.
    """

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        payment_method_types: list[str] | None = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.payment_method_types = payment_method_types or ["card"]

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> GatewayIntent:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                payment_method_types=self.payment_method_types,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error("stripe_intent_create_failed", error=str(e), amount=amount)
            raise GatewayError("Payment gateway rejected the checkout") from e

        gateway_intent = intent_from_stripe(intent)
        logger.info("stripe_intent_created", payment_intent_id=gateway_intent.id)
        return gateway_intent

    async def get_intent(self, intent_id: str) -> GatewayIntent:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve, intent_id, api_key=self.api_key
            )
        except stripe.InvalidRequestError as e:
            logger.info("stripe_intent_not_found", payment_intent_id=intent_id)
            raise ValidationError("Unknown payment intent") from e
        except stripe.StripeError as e:
            logger.error(
                "stripe_intent_retrieve_failed",
                payment_intent_id=intent_id,
                error=str(e),
            )
            raise GatewayError("Payment gateway unavailable") from e

        return intent_from_stripe(intent)

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent:
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature, self.webhook_secret
            )
            event = orjson.loads(payload)
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise ValidationError("Invalid webhook signature") from e
        except ValueError as e:
            # orjson.JSONDecodeError and UnicodeDecodeError
            logger.warning("webhook_payload_invalid", error=str(e))
            raise ValidationError("Invalid webhook payload") from e

        event_type = event.get("type", "")
        intent = None
        if event_type.startswith("payment_intent."):
            intent = intent_from_stripe(event.get("data", {}).get("object", {}))

        return GatewayEvent(id=event.get("id", ""), type=event_type, intent=intent)
