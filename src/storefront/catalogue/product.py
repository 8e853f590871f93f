"""Product aggregate — the catalogue entries checkout prices against.

A product is either *simple* (one price, no variations) or a *variant
product* (no product price, one or more sized variations each with its own
price). The invariants keep the two shapes apart so a half-variant product
cannot be stored. The percentage discount always lives on the product.

Stock is not a field here: the inventory ledger keeps one counter per
variation, or one per simple product when its stock is tracked.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, String, Text

from storefront.catalogue.events import (
    ProductCreated,
    ProductRepriced,
    VariationPriceChanged,
    VariationRemoved,
)
from storefront.domain import storefront
from storefront.errors import VariationNotFound, VariationRequired


class SizingType(Enum):
    NONE = "none"
    CLOTHING = "clothing"
    SHOES = "shoes"
    CUSTOM = "custom"


@storefront.entity(part_of="Product")
class Variation:
    size = String(required=True, max_length=50)
    price = Float(required=True, min_value=0.0)
    sku = String(max_length=100)


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    images = Text()  # JSON array of image URLs
    price = Float(min_value=0.0)  # Only for simple products
    discount = Float(default=0.0, min_value=0.0, max_value=100.0)
    has_variations = Boolean(default=False)
    variations = HasMany(Variation)
    sizing_type = String(choices=SizingType, default=SizingType.NONE.value)
    publish = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variant_products_are_priced_per_variation(self):
        if not self.has_variations:
            return
        if self.price is not None:
            raise ValidationError({"price": ["Products with variations are priced per variation"]})
        if not self.variations:
            raise ValidationError({"variations": ["Products with variations need at least one variation"]})

    @invariant.post
    def simple_products_have_a_price_and_no_variations(self):
        if self.has_variations:
            return
        if self.price is None:
            raise ValidationError({"price": ["Price is required for products without variations"]})
        if self.variations:
            raise ValidationError({"variations": ["Only products with variations can carry variations"]})

    @invariant.post
    def sizes_are_unique(self):
        sizes = [v.size for v in self.variations]
        if len(sizes) != len(set(sizes)):
            raise ValidationError({"variations": ["Each variation needs a distinct size"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        price=None,
        discount=0.0,
        images=None,
        variations=None,
        sizing_type=None,
        publish=True,
    ):
        """Create a simple product (``price``) or a variant product (``variations``).

        ``variations`` is a list of dicts with ``size``, ``price`` and an
        optional ``sku``.
        """
        now = datetime.now(UTC)
        variation_entities = [
            Variation(size=v["size"], price=v["price"], sku=v.get("sku")) for v in (variations or [])
        ]
        has_variations = bool(variation_entities)

        product = cls(
            name=name,
            images=json.dumps(list(images or [])),
            price=price,
            discount=discount or 0.0,
            has_variations=has_variations,
            variations=variation_entities,
            sizing_type=sizing_type or (SizingType.CLOTHING.value if has_variations else SizingType.NONE.value),
            publish=publish,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                name=name,
                price=price,
                discount=product.discount,
                has_variations=has_variations,
                variation_ids=json.dumps([str(v.id) for v in product.variations]),
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def image_urls(self) -> list[str]:
        return json.loads(self.images) if self.images else []

    def find_variation(self, variation_id=None, selected_size=None):
        """Resolve the variation a cart line refers to.

        Simple products resolve to ``None``. Variant products resolve by id
        first, then by size; a line that names neither cannot be priced.
        """
        if not self.has_variations:
            if variation_id:
                raise ValidationError({"variation_id": [f"{self.name} has no variations"]})
            return None

        if variation_id:
            variation = next((v for v in self.variations if str(v.id) == str(variation_id)), None)
            if variation is None:
                raise VariationNotFound(str(self.id), self.name, variation=str(variation_id))
            return variation

        if selected_size:
            size = str(selected_size).strip()
            variation = next((v for v in self.variations if v.size == size), None)
            if variation is None:
                raise VariationNotFound(str(self.id), self.name, variation=size)
            return variation

        raise VariationRequired(str(self.id), self.name)

    def unit_price(self, variation=None) -> float:
        """Post-discount price of one unit: base × (1 − discount/100)."""
        base = variation.price if variation is not None else self.price
        return base * (1 - (self.discount or 0.0) / 100)

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def reprice(self, price=None, discount=None):
        """Change the simple price and/or the discount percentage."""
        if price is not None and self.has_variations:
            raise ValidationError({"price": ["Products with variations are priced per variation"]})

        with atomic_change(self):
            if price is not None:
                self.price = price
            if discount is not None:
                self.discount = discount
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductRepriced(
                product_id=str(self.id),
                price=self.price,
                discount=self.discount,
            )
        )

    def change_variation_price(self, variation_id, price):
        variation = next((v for v in self.variations if str(v.id) == str(variation_id)), None)
        if variation is None:
            raise VariationNotFound(str(self.id), self.name, variation=str(variation_id))

        previous_price = variation.price
        variation.price = price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariationPriceChanged(
                product_id=str(self.id),
                variation_id=str(variation_id),
                previous_price=previous_price,
                price=price,
            )
        )

    def remove_variation(self, variation_id):
        variation = next((v for v in self.variations if str(v.id) == str(variation_id)), None)
        if variation is None:
            raise VariationNotFound(str(self.id), self.name, variation=str(variation_id))
        if len(self.variations) == 1:
            raise ValidationError({"variations": ["Cannot remove the last variation of a product"]})

        self.remove_variations(variation)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariationRemoved(
                product_id=str(self.id),
                variation_id=str(variation_id),
                size=variation.size,
            )
        )
