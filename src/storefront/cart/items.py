"""Cart item management — commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.management import load_product
from storefront.domain import storefront
from storefront.inventory.ledger import get_ledger


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    customer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variation_id = Identifier()
    selected_size = String(max_length=50)
    quantity = Integer(default=1, min_value=1)


@storefront.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    customer_id = Identifier(required=True)
    item_id = Identifier(required=True)


def _existing_cart(customer_id) -> ShoppingCart:
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    if cart is None:
        raise ValidationError({"cart": ["Cart is empty"]})
    return cart


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = load_product(command.product_id)
        variation = product.find_variation(
            variation_id=command.variation_id,
            selected_size=command.selected_size,
        )
        variation_id = str(variation.id) if variation else None

        stock_limit = get_ledger().level(str(product.id), variation_id)
        if stock_limit is not None and stock_limit <= 0:
            label = f"{product.name} ({variation.size})" if variation else product.name
            raise ValidationError({"stock": [f"{label} is out of stock"]})

        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.for_customer(command.customer_id) or ShoppingCart.create(customer_id=command.customer_id)
        item = cart.add_item(
            product_id=str(product.id),
            variation_id=variation_id,
            selected_size=variation.size if variation else None,
            quantity=command.quantity,
            stock_limit=stock_limit,
        )
        repo.add(cart)
        return str(item.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(command.customer_id)
        item = next((i for i in cart.items if str(i.id) == str(command.item_id)), None)
        stock_limit = get_ledger().level(str(item.product_id), item.variation_id) if item else None
        cart.update_item_quantity(
            item_id=command.item_id,
            new_quantity=command.new_quantity,
            stock_limit=stock_limit,
        )
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = _existing_cart(command.customer_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)
