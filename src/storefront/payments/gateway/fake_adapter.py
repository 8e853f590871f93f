"""Configurable fake payment gateway for development and testing.

This adapter simulates a hosted-checkout gateway without any external calls.
Webhook payloads are signed with HMAC-SHA256 over the raw body using the
configured secret; ``sign()`` produces the header a test delivery needs.
"""

import hashlib
import hmac
import json
from collections.abc import Sequence
from uuid import uuid4

from storefront.errors import SignatureError
from storefront.payments.gateway.port import CheckoutSession, PaymentEvent, PaymentGateway, SessionLine


class GatewayUnavailable(Exception):
    """Raised by the fake when configured to fail."""


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = "whsec_test", base_url: str = "https://checkout.fake") -> None:
        self.webhook_secret = webhook_secret
        self.base_url = base_url
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(
        self,
        lines: Sequence[SessionLine],
        metadata: dict[str, str],
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        self.calls.append(
            {
                "method": "create_checkout_session",
                "lines": list(lines),
                "metadata": dict(metadata),
                "customer_email": customer_email,
                "idempotency_key": idempotency_key,
            }
        )
        if not self.should_succeed:
            raise GatewayUnavailable(self.failure_reason)

        session_id = f"cs_fake_{uuid4().hex[:16]}"
        return CheckoutSession(session_id=session_id, url=f"{self.base_url}/pay/{session_id}")

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def construct_event(self, payload: bytes, signature: str) -> PaymentEvent:
        self.calls.append({"method": "construct_event", "signature": signature})
        if not signature or not hmac.compare_digest(self.sign(payload), signature):
            raise SignatureError("Invalid webhook signature")

        try:
            event = json.loads(payload)
            session = event.get("data", {}).get("object", {})
            return PaymentEvent(
                event_id=event["id"],
                event_type=event["type"],
                payment_intent_id=session.get("payment_intent"),
                metadata=session.get("metadata") or {},
            )
        except (KeyError, AttributeError, ValueError) as exc:
            raise SignatureError(f"Unreadable webhook payload: {exc}") from exc
