"""Shopping Cart aggregate — one cart per customer.

Cart lines hold references only (product, variation, size, quantity); prices
are resolved from the live catalogue when the customer checks out.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.cart.events import CartItemAdded, CartItemRemoved, CartLinesOrdered, CartQuantityUpdated
from storefront.domain import storefront


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    variation_id = Identifier()
    selected_size = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    def refers_to(self, product_id, variation_id) -> bool:
        return str(self.product_id) == str(product_id) and (self.variation_id or None) == (variation_id or None)


@storefront.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    @staticmethod
    def _check_stock_limit(quantity, stock_limit):
        if stock_limit is not None and quantity > stock_limit:
            raise ValidationError({"quantity": [f"Cannot add more items. Only {stock_limit} units available"]})

    def add_item(self, product_id, variation_id=None, selected_size=None, quantity=1, stock_limit=None):
        """Add a line, or raise the quantity of the line for the same product and variation.

        ``stock_limit`` is the current ledger level for the line (``None`` when
        stock is untracked); the cart never asks for more than that.
        """
        existing = next((i for i in self.items if i.refers_to(product_id, variation_id)), None)
        now = datetime.now(UTC)

        if existing:
            self._check_stock_limit(existing.quantity + quantity, stock_limit)
            existing.quantity += quantity
            item = existing
        else:
            self._check_stock_limit(quantity, stock_limit)
            item = CartItem(
                product_id=product_id,
                variation_id=variation_id,
                selected_size=selected_size,
                quantity=quantity,
                added_at=now,
            )
            self.add_items(item)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variation_id=variation_id,
                selected_size=selected_size,
                quantity=item.quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity, stock_limit=None):
        item = self._find_item(item_id)
        self._check_stock_limit(new_quantity, stock_limit)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        item = self._find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear_ordered_lines(self, order_id, ordered):
        """Drop the lines an order was placed for.

        ``ordered`` is an iterable of ``(product_id, variation_id)`` pairs.
        Lines added since the checkout started are kept.
        """
        ordered = list(ordered)
        removed = [i for i in self.items if any(i.refers_to(p, v) for p, v in ordered)]
        for item in removed:
            self.remove_items(item)

        if removed:
            self.updated_at = datetime.now(UTC)
            self.raise_(
                CartLinesOrdered(
                    cart_id=str(self.id),
                    order_id=str(order_id),
                    line_count=len(removed),
                )
            )
        return len(removed)
