"""Payment webhook processor.

Only a verified ``checkout.session.completed`` event creates an order. The
event's metadata holds the quote frozen when the session was opened; it is
replayed as-is, without re-reading catalogue prices.

The payment intent id is the idempotency key. Redelivered events find the
order (or the claim) already in place and are acknowledged without touching
stock again.
"""

from enum import Enum

import structlog
from protean.exceptions import ValidationError

from storefront.checkout.factory import OrderFactory
from storefront.checkout.quote import FrozenQuote
from storefront.errors import IdempotencyConflict, InsufficientStockError, NotFoundError
from storefront.order.order import PaymentStatus
from storefront.payments.gateway.port import CHECKOUT_COMPLETED, PaymentGateway

logger = structlog.get_logger(__name__)


class WebhookOutcome(Enum):
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    IGNORED = "ignored"
    REJECTED = "rejected"


class PaymentWebhookProcessor:
    def __init__(self, gateway: PaymentGateway, factory: OrderFactory) -> None:
        self.gateway = gateway
        self.factory = factory

    def handle(self, payload: bytes, signature: str) -> WebhookOutcome:
        """Verify and process one webhook delivery.

        ``SignatureError`` propagates before anything else happens. Business
        failures are logged and reported as ``REJECTED``; storage failures
        propagate so the gateway retries the delivery.
        """
        event = self.gateway.construct_event(payload, signature)
        log = logger.bind(event_id=event.event_id, event_type=event.event_type)

        if event.event_type != CHECKOUT_COMPLETED:
            log.debug("webhook_event_ignored")
            return WebhookOutcome.IGNORED

        return self.handle_payment_confirmed(event.event_id, event.payment_intent_id, event.metadata)

    def handle_payment_confirmed(self, event_id: str, payment_intent_id: str | None, metadata: dict) -> WebhookOutcome:
        log = logger.bind(event_id=event_id, payment_intent_id=payment_intent_id)

        if not payment_intent_id:
            log.error("payment_confirmation_without_intent")
            return WebhookOutcome.REJECTED

        try:
            quote = FrozenQuote.from_metadata(metadata)
            order_id = self.factory.create_order(
                customer_id=quote.customer_id,
                lines=quote.lines,
                delivery_address_id=quote.address_id,
                payment_status=PaymentStatus.PAID.value,
                payment_id=payment_intent_id,
                idempotency_key=f"payment:{payment_intent_id}",
            )
        except IdempotencyConflict as exc:
            log.info("payment_already_processed", order_id=exc.existing_order_id)
            return WebhookOutcome.ALREADY_PROCESSED
        except (InsufficientStockError, NotFoundError, ValidationError) as exc:
            # The shopper has paid; this needs a person (refund or backorder).
            log.error(
                "paid_checkout_not_fulfilled",
                error_type=type(exc).__name__,
                error=str(exc),
                customer_id=metadata.get("customer_id"),
                sub_total=metadata.get("sub_total"),
            )
            return WebhookOutcome.REJECTED

        log.info("payment_order_created", order_id=order_id)
        return WebhookOutcome.PROCESSED
