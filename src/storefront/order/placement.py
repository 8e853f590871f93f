"""Order placement — command and handler.

The handler runs after stock has been taken from the ledger. It writes the
order and removes the ordered cart lines in the same unit of work, so the cart
is only emptied when the order exists.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    delivery_address_id = Identifier(required=True)
    payment_status = String(required=True, max_length=50)
    payment_id = String(max_length=255)
    lines = Text(required=True)  # JSON: list of resolved lines


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines = json.loads(command.lines)
        order = Order.place(
            order_id=command.order_id,
            customer_id=command.customer_id,
            delivery_address_id=command.delivery_address_id,
            lines=lines,
            payment_status=command.payment_status,
            payment_id=command.payment_id or "",
        )
        current_domain.repository_for(Order).add(order)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.for_customer(command.customer_id)
        if cart is not None:
            ordered = [(line["product_id"], line.get("variation_id")) for line in lines]
            if cart.clear_ordered_lines(order.id, ordered):
                cart_repo.add(cart)

        return str(order.id)
