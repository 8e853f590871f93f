"""Tests for the Product aggregate: simple and variant shapes, pricing, variations."""

import pytest
from protean.exceptions import ValidationError

from storefront.catalogue.events import ProductCreated, ProductRepriced, VariationRemoved
from storefront.catalogue.product import Product, SizingType, Variation
from storefront.errors import VariationNotFound, VariationRequired


def _shirt(discount=0.0):
    return Product.create(
        name="Linen Shirt",
        discount=discount,
        variations=[
            {"size": "M", "price": 80.0, "sku": "LS-M"},
            {"size": "L", "price": 100.0, "sku": "LS-L"},
        ],
    )


class TestProductShapes:
    def test_simple_product_has_price_and_no_variations(self):
        product = Product.create(name="Canvas Tote", price=250.0)
        assert product.has_variations is False
        assert product.price == 250.0
        assert len(product.variations) == 0
        assert product.sizing_type == SizingType.NONE.value

    def test_variant_product_is_priced_per_variation(self):
        product = _shirt()
        assert product.has_variations is True
        assert product.price is None
        assert [v.size for v in product.variations] == ["M", "L"]
        assert product.sizing_type == SizingType.CLOTHING.value

    def test_simple_product_without_price_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Product.create(name="Unpriced")
        assert "price" in exc.value.messages

    def test_variant_product_with_product_price_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Product.create(name="Half Variant", price=10.0, variations=[{"size": "S", "price": 10.0}])
        assert "price" in exc.value.messages

    def test_duplicate_sizes_are_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(
                name="Twin Sizes",
                variations=[{"size": "S", "price": 10.0}, {"size": "S", "price": 12.0}],
            )

    def test_discount_above_hundred_is_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(name="Too Cheap", price=10.0, discount=120.0)

    def test_creation_raises_product_created(self):
        product = _shirt()
        events = [e for e in product._events if isinstance(e, ProductCreated)]
        assert len(events) == 1
        assert events[0].has_variations is True

    def test_images_are_kept_in_order(self):
        product = Product.create(name="Tote", price=10.0, images=["a.jpg", "b.jpg"])
        assert product.image_urls == ["a.jpg", "b.jpg"]


class TestFindVariation:
    def test_simple_product_resolves_to_no_variation(self):
        product = Product.create(name="Tote", price=10.0)
        assert product.find_variation() is None

    def test_simple_product_rejects_a_variation_id(self):
        product = Product.create(name="Tote", price=10.0)
        with pytest.raises(ValidationError):
            product.find_variation(variation_id="var-1")

    def test_resolves_by_id(self):
        product = _shirt()
        large = product.variations[1]
        assert product.find_variation(variation_id=large.id).id == large.id

    def test_resolves_by_size(self):
        product = _shirt()
        assert product.find_variation(selected_size="M").price == 80.0

    def test_unknown_id_raises_variation_not_found(self):
        product = _shirt()
        with pytest.raises(VariationNotFound) as exc:
            product.find_variation(variation_id="missing")
        assert exc.value.message == "Selected variation for Linen Shirt not found"

    def test_unknown_size_raises_variation_not_found(self):
        product = _shirt()
        with pytest.raises(VariationNotFound):
            product.find_variation(selected_size="XXL")

    def test_no_variation_or_size_raises_variation_required(self):
        product = _shirt()
        with pytest.raises(VariationRequired):
            product.find_variation()


class TestUnitPrice:
    def test_variation_price_with_product_discount(self):
        product = _shirt(discount=10.0)
        large = product.find_variation(selected_size="L")
        assert product.unit_price(large) == pytest.approx(90.0)

    def test_simple_price_with_discount(self):
        product = Product.create(name="Tote", price=200.0, discount=25.0)
        assert product.unit_price() == pytest.approx(150.0)

    def test_no_discount_keeps_base_price(self):
        product = Product.create(name="Tote", price=199.0)
        assert product.unit_price() == 199.0


class TestAdministration:
    def test_reprice_simple_product(self):
        product = Product.create(name="Tote", price=100.0)
        product.reprice(price=120.0, discount=5.0)
        assert product.price == 120.0
        assert product.discount == 5.0
        assert any(isinstance(e, ProductRepriced) for e in product._events)

    def test_cannot_set_product_price_on_variant_product(self):
        product = _shirt()
        with pytest.raises(ValidationError):
            product.reprice(price=50.0)

    def test_discount_change_on_variant_product(self):
        product = _shirt()
        product.reprice(discount=50.0)
        assert product.unit_price(product.variations[0]) == pytest.approx(40.0)

    def test_change_variation_price(self):
        product = _shirt()
        medium = product.variations[0]
        product.change_variation_price(medium.id, 85.0)
        assert product.find_variation(selected_size="M").price == 85.0

    def test_remove_variation(self):
        product = _shirt()
        medium = product.variations[0]
        product.remove_variation(medium.id)
        assert [v.size for v in product.variations] == ["L"]
        assert any(isinstance(e, VariationRemoved) for e in product._events)

    def test_cannot_remove_last_variation(self):
        product = _shirt()
        product.remove_variation(product.variations[0].id)
        with pytest.raises(ValidationError):
            product.remove_variation(product.variations[0].id)

    def test_remove_unknown_variation(self):
        product = _shirt()
        with pytest.raises(VariationNotFound):
            product.remove_variation("missing")


class TestVariationEntity:
    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            Variation(size="S", price=-1.0)
