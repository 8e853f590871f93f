"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float()
    discount = Float()
    has_variations = Boolean()
    variation_ids = Text()  # JSON array
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductRepriced:
    """The simple price or the discount of a product changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    price = Float()
    discount = Float()


@storefront.event(part_of="Product")
class VariationPriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    variation_id = Identifier(required=True)
    previous_price = Float()
    price = Float(required=True)


@storefront.event(part_of="Product")
class VariationRemoved:
    __version__ = 1

    product_id = Identifier(required=True)
    variation_id = Identifier(required=True)
    size = String(max_length=50)
