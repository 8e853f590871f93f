"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was persisted with its stock already taken from the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_id = String(max_length=255)
    payment_status = String(required=True, max_length=50)
    total = Float(required=True)
    line_count = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """An administrator moved the order to another status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(max_length=20)
    new_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)
