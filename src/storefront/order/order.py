"""Order aggregate — the durable record of a checkout.

Line items freeze the post-discount unit price captured when the order was
placed; later catalogue changes never reach them. After placement only the
status moves.

Status lifecycle:
    pending → processing → delivered
    pending / processing → cancelled

Any of the four statuses may be set from any other; every effective change is
recorded in ``status_history`` and raised as ``OrderStatusChanged``. Status
changes never touch stock.
"""

import json
import math
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.order.events import OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    CASH_ON_DELIVERY = "CASH ON DELIVERY"
    PAID = "PAID"


INVALID_STATUS_MESSAGE = "Invalid status. Must be one of: " + ", ".join(s.value for s in OrderStatus)


def new_order_id() -> str:
    return f"ORD-{uuid4().hex}"


@storefront.entity(part_of="Order")
class OrderLineItem:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    images = Text()  # JSON array of image URLs
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    variation_id = Identifier()
    selected_size = String(max_length=50)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@storefront.entity(part_of="Order")
class StatusChange:
    from_status = String(max_length=20)
    to_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)


@storefront.aggregate
class Order:
    customer_id = Identifier(required=True)
    line_items = HasMany(OrderLineItem)
    payment_id = String(max_length=255, default="")
    payment_status = String(choices=PaymentStatus, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivery_address_id = Identifier(required=True)
    sub_total = Float(min_value=0.0)
    total = Float(min_value=0.0)
    status_history = HasMany(StatusChange)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_line_items(self):
        if not self.line_items:
            raise ValidationError({"line_items": ["An order needs at least one line item"]})

    @invariant.post
    def totals_must_match_line_items(self):
        expected = sum(item.line_total for item in self.line_items)
        if not math.isclose(self.sub_total or 0.0, expected, abs_tol=1e-6):
            raise ValidationError({"sub_total": ["Sub total must equal the sum of the line items"]})
        # Shipping is free and no tax is charged
        if not math.isclose(self.total or 0.0, self.sub_total or 0.0, abs_tol=1e-6):
            raise ValidationError({"total": ["Total must equal the sub total"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_id, customer_id, delivery_address_id, lines, payment_status, payment_id=""):
        """Create a pending order from resolved cart lines.

        ``lines`` is a list of dicts with ``product_id``, ``name``, ``images``,
        ``quantity``, ``unit_price`` and optional ``variation_id`` and
        ``selected_size``.
        """
        now = datetime.now(UTC)
        line_items = [
            OrderLineItem(
                product_id=line["product_id"],
                name=line["name"],
                images=json.dumps(list(line.get("images") or [])),
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                variation_id=line.get("variation_id"),
                selected_size=line.get("selected_size"),
            )
            for line in lines
        ]
        sub_total = sum(item.line_total for item in line_items)

        order = cls(
            id=order_id,
            customer_id=customer_id,
            line_items=line_items,
            payment_id=payment_id or "",
            payment_status=payment_status,
            status=OrderStatus.PENDING.value,
            delivery_address_id=delivery_address_id,
            sub_total=sub_total,
            total=sub_total,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=order_id,
                customer_id=str(customer_id),
                payment_id=order.payment_id,
                payment_status=payment_status,
                total=sub_total,
                line_count=len(line_items),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def transition_to(self, status) -> bool:
        """Move to ``status`` (matched case-insensitively).

        Returns False when the order already has that status.
        """
        try:
            target = OrderStatus(str(status or "").strip().lower())
        except ValueError:
            raise ValidationError({"status": [INVALID_STATUS_MESSAGE]}) from None

        if target.value == self.status:
            return False

        previous = self.status
        now = datetime.now(UTC)
        self.add_status_history(StatusChange(from_status=previous, to_status=target.value, changed_at=now))
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True
