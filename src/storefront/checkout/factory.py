"""Order factory — turns resolved lines into a persisted order.

Sequence for one order:

1. Claim the idempotency key, if the caller has one. The claim is the
   storage-level arbiter; the order lookup before it only saves work.
2. Take stock for every line with the ledger's conditional decrement.
3. Persist the order and clear the ordered cart lines (``PlaceOrder``).

If anything fails after the claim, the stock already taken is returned and
the claim is released before the error propagates. No order is left with
partial stock, and no stock is left taken without an order.
"""

import json
import time
from collections.abc import Callable, Sequence

import structlog
from protean.utils.globals import current_domain

from storefront.checkout.resolver import ResolvedLine
from storefront.config import DEFAULT_CHECKOUT_TIMEOUT_SECONDS
from storefront.errors import CheckoutTimeout, IdempotencyConflict, InsufficientStockError
from storefront.inventory.ledger.port import StockLedger
from storefront.order.order import Order, new_order_id
from storefront.order.placement import PlaceOrder

logger = structlog.get_logger(__name__)


class OrderFactory:
    def __init__(
        self,
        ledger: StockLedger,
        timeout_seconds: float = DEFAULT_CHECKOUT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ledger = ledger
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    def create_order(
        self,
        customer_id: str,
        lines: Sequence[ResolvedLine],
        delivery_address_id: str,
        payment_status: str,
        payment_id: str = "",
        idempotency_key: str | None = None,
    ) -> str:
        """Place an order and return its id.

        Raises ``IdempotencyConflict`` when ``idempotency_key`` already belongs
        to another order, ``InsufficientStockError`` when a line cannot be
        covered, and ``CheckoutTimeout`` when the deadline passes first.
        """
        deadline = self._clock() + self.timeout_seconds
        order_id = new_order_id()
        log = logger.bind(order_id=order_id, customer_id=str(customer_id), payment_id=payment_id or None)

        if idempotency_key:
            self._claim(idempotency_key, order_id, payment_id)

        taken: list[ResolvedLine] = []
        try:
            for line in lines:
                self._check_deadline(deadline)
                movement = self.ledger.decrement(line.product_id, line.variation_id, line.quantity)
                if not movement.ok:
                    raise InsufficientStockError(
                        product_id=line.product_id,
                        name=line.name,
                        available=movement.available,
                        requested=line.quantity,
                        variation_id=line.variation_id,
                        size=line.selected_size,
                    )
                taken.append(line)

            self._check_deadline(deadline)
            current_domain.process(
                PlaceOrder(
                    order_id=order_id,
                    customer_id=str(customer_id),
                    delivery_address_id=str(delivery_address_id),
                    payment_status=payment_status,
                    payment_id=payment_id or "",
                    lines=json.dumps([line.to_dict() for line in lines]),
                ),
                asynchronous=False,
            )
        except Exception as exc:
            log.warning("order_creation_rolled_back", reason=type(exc).__name__, lines_returned=len(taken))
            self._return_stock(taken, order_id)
            if idempotency_key:
                self.ledger.release_claim(idempotency_key, order_id)
            raise

        log.info("order_created", line_count=len(lines), payment_status=payment_status)
        return order_id

    def _claim(self, key: str, order_id: str, payment_id: str) -> None:
        existing = current_domain.repository_for(Order).find_by_payment_id(payment_id)
        if existing is not None:
            raise IdempotencyConflict(key, str(existing.id))

        if not self.ledger.claim(key, order_id):
            raise IdempotencyConflict(key, self.ledger.claimant(key))

    def _check_deadline(self, deadline: float) -> None:
        if self._clock() > deadline:
            raise CheckoutTimeout(self.timeout_seconds)

    def _return_stock(self, taken: Sequence[ResolvedLine], order_id: str) -> None:
        for line in taken:
            try:
                self.ledger.increment(line.product_id, line.variation_id, line.quantity)
            except Exception:
                logger.exception(
                    "stock_compensation_failed",
                    order_id=order_id,
                    product_id=line.product_id,
                    variation_id=line.variation_id,
                    quantity=line.quantity,
                )
