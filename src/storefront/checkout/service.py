"""Checkout application service — cash on delivery and online payment.

Both flows resolve the cart against the live catalogue first. Cash on
delivery then goes straight to the order factory; online payment only opens
a gateway session carrying the frozen quote, and the order is created when
the gateway confirms the payment (see ``storefront.payments.webhook``).
"""

from collections.abc import Iterable

import structlog

from storefront.checkout.factory import OrderFactory
from storefront.checkout.quote import FrozenQuote
from storefront.checkout.resolver import CartSnapshotResolver, LineReference, ResolvedLine
from storefront.customer.address import find_address_for
from storefront.errors import IdempotencyConflict, InsufficientStockError
from storefront.order.order import PaymentStatus
from storefront.payments.gateway.port import CheckoutSession, PaymentGateway, SessionLine

logger = structlog.get_logger(__name__)


def session_line(line: ResolvedLine) -> SessionLine:
    name = f"{line.name} - {line.selected_size}" if line.selected_size else line.name
    return SessionLine(
        name=name,
        unit_amount=round(line.unit_price * 100),
        quantity=line.quantity,
        images=line.images,
    )


class CheckoutService:
    def __init__(
        self,
        resolver: CartSnapshotResolver,
        factory: OrderFactory,
        gateway: PaymentGateway,
    ) -> None:
        self.resolver = resolver
        self.factory = factory
        self.gateway = gateway

    def _resolve(self, customer_id, items: Iterable[LineReference] | None) -> list[ResolvedLine]:
        if items is None:
            return self.resolver.resolve(customer_id)
        return self.resolver.resolve_lines(items)

    def cash_on_delivery(
        self,
        customer_id,
        address_id,
        items: Iterable[LineReference] | None = None,
        idempotency_key: str | None = None,
    ) -> str:
        """Place a cash-on-delivery order and return its id.

        ``items`` defaults to the customer's server-side cart. A request
        retried with the same ``idempotency_key`` returns the first order.
        """
        find_address_for(customer_id, address_id)
        lines = self._resolve(customer_id, items)

        key = f"cod:{customer_id}:{idempotency_key}" if idempotency_key else None
        try:
            return self.factory.create_order(
                customer_id=str(customer_id),
                lines=lines,
                delivery_address_id=str(address_id),
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
                idempotency_key=key,
            )
        except IdempotencyConflict as exc:
            logger.info("checkout_replayed", customer_id=str(customer_id), order_id=exc.existing_order_id)
            if exc.existing_order_id is None:
                raise
            return exc.existing_order_id

    def create_payment_session(
        self,
        customer_id,
        address_id,
        items: Iterable[LineReference] | None = None,
        customer_email: str | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        """Quote the cart and open a gateway checkout session for it.

        Stock is only checked here, not taken; it is taken when the payment
        is confirmed.
        """
        find_address_for(customer_id, address_id)
        lines = self._resolve(customer_id, items)

        for line in lines:
            availability = self.resolver.ledger.check_availability(line.product_id, line.variation_id, line.quantity)
            if not availability.available:
                raise InsufficientStockError(
                    product_id=line.product_id,
                    name=line.name,
                    available=availability.quantity,
                    requested=line.quantity,
                    variation_id=line.variation_id,
                    size=line.selected_size,
                )

        quote = FrozenQuote(customer_id=str(customer_id), address_id=str(address_id), lines=tuple(lines))
        session = self.gateway.create_checkout_session(
            lines=[session_line(line) for line in lines],
            metadata=quote.to_metadata(),
            customer_email=customer_email,
            idempotency_key=idempotency_key,
        )
        logger.info(
            "payment_session_created",
            customer_id=str(customer_id),
            session_id=session.session_id,
            total=quote.total,
        )
        return session
