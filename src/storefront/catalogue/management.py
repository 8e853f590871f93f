"""Product administration — commands and handler.

Creating a product also opens its stock counters in the inventory ledger;
every later stock change goes through the ledger, never through the product.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import ProductNotFound, VariationNotFound
from storefront.inventory.ledger import get_ledger

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=255)
    price = Float(min_value=0.0)
    discount = Float(default=0.0, min_value=0.0, max_value=100.0)
    images = Text()  # JSON array of URLs
    variations = Text()  # JSON: list of {size, price, sku?, stock?}
    stock = Integer(min_value=0)  # Simple products only; omit for untracked stock
    sizing_type = String(max_length=20)
    publish = Boolean(default=True)


@storefront.command(part_of="Product")
class RepriceProduct:
    product_id = Identifier(required=True)
    price = Float(min_value=0.0)
    discount = Float(min_value=0.0, max_value=100.0)


@storefront.command(part_of="Product")
class ChangeVariationPrice:
    product_id = Identifier(required=True)
    variation_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)


@storefront.command(part_of="Product")
class RemoveVariation:
    product_id = Identifier(required=True)
    variation_id = Identifier(required=True)


@storefront.command(part_of="Product")
class SetStockLevel:
    product_id = Identifier(required=True)
    variation_id = Identifier()
    quantity = Integer(required=True, min_value=0)


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)


def load_product(product_id) -> Product:
    """Fetch a product, reporting a missing one as ``ProductNotFound``."""
    products = current_domain.repository_for(Product)._dao.query.filter(id=str(product_id)).all().items
    if not products:
        raise ProductNotFound(str(product_id))
    return products[0]


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        variations = json.loads(command.variations) if command.variations else []
        if variations and command.stock is not None:
            raise ValidationError({"stock": ["Stock is tracked per variation for products with variations"]})

        product = Product.create(
            name=command.name,
            price=command.price,
            discount=command.discount,
            images=json.loads(command.images) if command.images else [],
            variations=variations,
            sizing_type=command.sizing_type,
            publish=command.publish,
        )
        current_domain.repository_for(Product).add(product)

        ledger = get_ledger()
        if product.has_variations:
            for variation, data in zip(product.variations, variations, strict=True):
                ledger.set_level(str(product.id), str(variation.id), int(data.get("stock") or 0))
        elif command.stock is not None:
            ledger.set_level(str(product.id), None, command.stock)

        logger.info("product_created", product_id=str(product.id), has_variations=product.has_variations)
        return str(product.id)

    @handle(RepriceProduct)
    def reprice_product(self, command):
        product = load_product(command.product_id)
        product.reprice(price=command.price, discount=command.discount)
        current_domain.repository_for(Product).add(product)

    @handle(ChangeVariationPrice)
    def change_variation_price(self, command):
        product = load_product(command.product_id)
        product.change_variation_price(command.variation_id, command.price)
        current_domain.repository_for(Product).add(product)

    @handle(RemoveVariation)
    def remove_variation(self, command):
        product = load_product(command.product_id)
        product.remove_variation(command.variation_id)
        current_domain.repository_for(Product).add(product)
        get_ledger().forget(str(product.id), str(command.variation_id))

    @handle(SetStockLevel)
    def set_stock_level(self, command):
        product = load_product(command.product_id)
        if product.has_variations:
            if not command.variation_id:
                raise ValidationError({"variation_id": ["Stock is tracked per variation for this product"]})
            if not any(str(v.id) == str(command.variation_id) for v in product.variations):
                raise VariationNotFound(str(product.id), product.name, variation=str(command.variation_id))
        elif command.variation_id:
            raise ValidationError({"variation_id": [f"{product.name} has no variations"]})

        get_ledger().set_level(str(product.id), command.variation_id, command.quantity)
        logger.info(
            "stock_level_set",
            product_id=str(product.id),
            variation_id=command.variation_id,
            quantity=command.quantity,
        )

    @handle(DeleteProduct)
    def delete_product(self, command):
        product = load_product(command.product_id)
        current_domain.repository_for(Product)._dao.delete(product)
        get_ledger().forget(str(product.id))
        logger.info("product_deleted", product_id=str(product.id))
