"""Stripe payment gateway adapter.

Uses the stripe-python SDK for hosted Checkout Sessions and webhook
signature verification. The API key is passed on every request instead of
being stored in ``stripe.api_key``, so several gateways with different
credentials can coexist.
"""

import json
from collections.abc import Sequence

import stripe
import structlog

from storefront.errors import SignatureError
from storefront.payments.gateway.port import CheckoutSession, PaymentEvent, PaymentGateway, SessionLine

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        success_url: str = "http://localhost:5173/success",
        cancel_url: str = "http://localhost:5173/cancel",
        currency: str = "inr",
        tolerance: int = 300,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.currency = currency
        self.tolerance = tolerance

    def _line_items(self, lines: Sequence[SessionLine]) -> list[dict]:
        return [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": line.name, "images": list(line.images)},
                    "unit_amount": line.unit_amount,
                },
                "quantity": line.quantity,
            }
            for line in lines
        ]

    def create_checkout_session(
        self,
        lines: Sequence[SessionLine],
        metadata: dict[str, str],
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        params = {
            "api_key": self.api_key,
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": self._line_items(lines),
            "metadata": metadata,
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as exc:
            logger.error("checkout_session_failed", error=str(exc), error_type=type(exc).__name__)
            raise

        logger.info("checkout_session_created", session_id=session.id)
        return CheckoutSession(session_id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self.webhook_secret,
                self.tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as exc:
            logger.warning("webhook_signature_invalid", error=str(exc))
            raise SignatureError("Invalid webhook signature") from exc

        event = json.loads(payload)
        session = event.get("data", {}).get("object", {})
        return PaymentEvent(
            event_id=event["id"],
            event_type=event["type"],
            payment_intent_id=session.get("payment_intent"),
            metadata=session.get("metadata") or {},
        )
