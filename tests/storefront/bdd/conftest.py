"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then

from storefront.catalogue.management import load_product
from storefront.checkout.factory import OrderFactory
from storefront.checkout.resolver import CartSnapshotResolver
from storefront.checkout.service import CheckoutService
from storefront.order.order import Order


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Product ids by name."""
    return {}


@pytest.fixture()
def outcome():
    """Container for what the When steps produced."""
    return {"results": [], "exc": None, "order_id": None}


@pytest.fixture()
def checkout(ledger, gateway):
    return CheckoutService(
        resolver=CartSnapshotResolver(ledger),
        factory=OrderFactory(ledger),
        gateway=gateway,
    )


@pytest.fixture()
def address_id(customer_id, make_address):
    return make_address(customer_id)


# ---------------------------------------------------------------------------
# Given steps — Catalogue
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" without variations and {stock:d} units in stock'))
def simple_product(products, make_simple_product, name, stock):
    products[name] = make_simple_product(name=name, stock=stock)


@given(parsers.cfparse('a product "{name}" in sizes "{sizes}" priced {price:f} with a {discount:d} percent discount'))
def variant_product(products, make_variant_product, name, sizes, price, discount):
    variations = []
    for entry in sizes.split(","):
        size, stock = entry.split(":")
        variations.append({"size": size.strip(), "price": price, "stock": int(stock)})
    products[name] = make_variant_product(name=name, variations=variations, discount=float(discount))


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name}" has {stock:d} units in stock'))
def simple_stock_is(products, ledger, name, stock):
    assert ledger.level(products[name], None) == stock


@then(parsers.cfparse('size "{size}" of "{name}" has {stock:d} units in stock'))
def variation_stock_is(products, ledger, name, size, stock):
    variation = load_product(products[name]).find_variation(selected_size=size)
    assert ledger.level(products[name], str(variation.id)) == stock


@then("the customer has no orders")
def customer_has_no_orders(customer_id):
    assert current_domain.repository_for(Order).for_customer(customer_id) == []
