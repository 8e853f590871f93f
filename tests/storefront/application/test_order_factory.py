"""Tests for the order factory: all-or-nothing stock, compensation, idempotency, deadlines."""

import itertools

import pytest
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart
from storefront.catalogue.management import ChangeVariationPrice, RepriceProduct, load_product
from storefront.checkout.factory import OrderFactory
from storefront.checkout.resolver import CartSnapshotResolver, LineReference
from storefront.errors import CheckoutTimeout, IdempotencyConflict, InsufficientStockError, TransientStorageError
from storefront.inventory.ledger import MemoryStockLedger
from storefront.order.order import Order, PaymentStatus


@pytest.fixture
def factory(ledger):
    return OrderFactory(ledger, timeout_seconds=10)


def _resolve(ledger, *references):
    return CartSnapshotResolver(ledger).resolve_lines(references)


def _orders_for(customer_id):
    return current_domain.repository_for(Order).for_customer(customer_id)


class FlakyLedger(MemoryStockLedger):
    """Fails the n-th decrement with a storage error."""

    def __init__(self, fail_on_call):
        super().__init__()
        self.fail_on_call = fail_on_call
        self.decrements = 0

    def decrement(self, product_id, variation_id, quantity):
        self.decrements += 1
        if self.decrements == self.fail_on_call:
            raise TransientStorageError("Inventory storage is unavailable")
        return super().decrement(product_id, variation_id, quantity)


class TestOrderCreation:
    def test_creates_pending_order_and_takes_stock(
        self, factory, ledger, customer_id, make_variant_product, make_address
    ):
        product_id = make_variant_product(variations=[{"size": "L", "price": 100.0, "stock": 5}], discount=10.0)
        address_id = make_address(customer_id)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=1, selected_size="L"))

        order_id = factory.create_order(
            customer_id=customer_id,
            lines=lines,
            delivery_address_id=address_id,
            payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
        )

        order = current_domain.repository_for(Order).get(order_id)
        assert order_id.startswith("ORD-")
        assert order.status == "pending"
        assert order.line_items[0].unit_price == pytest.approx(90.0)
        assert order.sub_total == pytest.approx(90.0)
        assert ledger.level(product_id, lines[0].variation_id) == 4

    def test_later_repricing_leaves_placed_order_untouched(
        self, factory, ledger, customer_id, make_variant_product, make_address
    ):
        product_id = make_variant_product(variations=[{"size": "L", "price": 100.0, "stock": 5}], discount=10.0)
        variation_id = str(load_product(product_id).variations[0].id)
        order_id = factory.create_order(
            customer_id=customer_id,
            lines=_resolve(ledger, LineReference(product_id=product_id, quantity=1, selected_size="L")),
            delivery_address_id=make_address(customer_id),
            payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
        )

        current_domain.process(RepriceProduct(product_id=product_id, discount=50.0), asynchronous=False)
        current_domain.process(
            ChangeVariationPrice(product_id=product_id, variation_id=variation_id, price=300.0),
            asynchronous=False,
        )

        order = current_domain.repository_for(Order).find_by_id(order_id)
        assert order.line_items[0].unit_price == pytest.approx(90.0)
        assert order.sub_total == pytest.approx(90.0)

    def test_ordered_cart_lines_are_cleared(self, factory, ledger, customer_id, make_simple_product, make_address):
        ordered_id = make_simple_product(name="Tote")
        kept_id = make_simple_product(name="Mug")
        current_domain.process(AddToCart(customer_id=customer_id, product_id=ordered_id), asynchronous=False)
        current_domain.process(AddToCart(customer_id=customer_id, product_id=kept_id), asynchronous=False)

        factory.create_order(
            customer_id=customer_id,
            lines=_resolve(ledger, LineReference(product_id=ordered_id, quantity=1)),
            delivery_address_id=make_address(customer_id),
            payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
        )

        cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
        assert [str(i.product_id) for i in cart.items] == [kept_id]


class TestAllOrNothing:
    def test_insufficient_line_returns_stock_of_earlier_lines(
        self, factory, ledger, customer_id, make_simple_product, make_address
    ):
        plenty_id = make_simple_product(name="Plenty", stock=10)
        scarce_id = make_simple_product(name="Scarce", stock=1)
        lines = _resolve(
            ledger,
            LineReference(product_id=plenty_id, quantity=3),
            LineReference(product_id=scarce_id, quantity=2),
        )

        with pytest.raises(InsufficientStockError) as exc:
            factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=make_address(customer_id),
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
            )

        assert exc.value.message == "Only 1 units of Scarce available in stock"
        assert exc.value.available == 1
        assert ledger.level(plenty_id, None) == 10
        assert ledger.level(scarce_id, None) == 1
        assert _orders_for(customer_id) == []

    def test_variant_shortage_names_the_size(self, factory, ledger, customer_id, make_variant_product, make_address):
        product_id = make_variant_product(name="Linen Shirt", variations=[{"size": "L", "price": 100.0, "stock": 1}])
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=2, selected_size="L"))

        with pytest.raises(InsufficientStockError) as exc:
            factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=make_address(customer_id),
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
            )

        assert exc.value.message == "Only 1 units of Linen Shirt (L) available in stock"

    def test_storage_failure_mid_order_is_compensated(self, customer_id, make_simple_product, make_address):
        ledger = FlakyLedger(fail_on_call=2)
        first = make_simple_product(name="First", stock=None)
        second = make_simple_product(name="Second", stock=None)
        ledger.set_level(first, None, 5)
        ledger.set_level(second, None, 5)
        lines = _resolve(
            ledger,
            LineReference(product_id=first, quantity=2),
            LineReference(product_id=second, quantity=2),
        )

        with pytest.raises(TransientStorageError):
            OrderFactory(ledger).create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=make_address(customer_id),
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
            )

        assert ledger.level(first, None) == 5
        assert ledger.level(second, None) == 5
        assert _orders_for(customer_id) == []

    def test_persistence_failure_returns_stock_and_releases_claim(
        self, factory, ledger, customer_id, make_simple_product, make_address, monkeypatch
    ):
        product_id = make_simple_product(stock=3)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=2))

        def refuse(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(Order, "place", classmethod(refuse))

        with pytest.raises(Exception, match="database unavailable"):
            factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=make_address(customer_id),
                payment_status=PaymentStatus.PAID.value,
                payment_id="pi_fail",
                idempotency_key="payment:pi_fail",
            )

        assert ledger.level(product_id, None) == 3
        assert ledger.claimant("payment:pi_fail") is None

    def test_deadline_overrun_is_compensated(self, ledger, customer_id, make_simple_product, make_address):
        first = make_simple_product(name="First", stock=5)
        second = make_simple_product(name="Second", stock=5)
        lines = _resolve(
            ledger,
            LineReference(product_id=first, quantity=1),
            LineReference(product_id=second, quantity=1),
        )
        # Start at 0, first line at 1, second line past the 5 second deadline
        ticks = itertools.chain([0.0, 1.0], itertools.repeat(60.0))
        factory = OrderFactory(ledger, timeout_seconds=5, clock=lambda: next(ticks))

        with pytest.raises(CheckoutTimeout):
            factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=make_address(customer_id),
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
            )

        assert ledger.level(first, None) == 5
        assert ledger.level(second, None) == 5


class TestIdempotency:
    def test_same_key_creates_one_order(self, factory, ledger, customer_id, make_simple_product, make_address):
        product_id = make_simple_product(stock=5)
        address_id = make_address(customer_id)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=1))
        params = {
            "customer_id": customer_id,
            "lines": lines,
            "delivery_address_id": address_id,
            "payment_status": PaymentStatus.PAID.value,
            "payment_id": "pi_once",
            "idempotency_key": "payment:pi_once",
        }

        order_id = factory.create_order(**params)
        with pytest.raises(IdempotencyConflict) as exc:
            factory.create_order(**params)

        assert exc.value.existing_order_id == order_id
        assert ledger.level(product_id, None) == 4
        assert len(_orders_for(customer_id)) == 1

    def test_existing_order_is_found_before_claiming(
        self, factory, ledger, customer_id, make_simple_product, make_address
    ):
        product_id = make_simple_product(stock=5)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=1))
        order_id = factory.create_order(
            customer_id=customer_id,
            lines=lines,
            delivery_address_id=make_address(customer_id),
            payment_status=PaymentStatus.PAID.value,
            payment_id="pi_pre",
            idempotency_key="payment:pi_pre",
        )
        # A fresh ledger has no claim; the stored order still wins
        fresh = MemoryStockLedger()

        with pytest.raises(IdempotencyConflict) as exc:
            OrderFactory(fresh).create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id="addr-any",
                payment_status=PaymentStatus.PAID.value,
                payment_id="pi_pre",
                idempotency_key="payment:pi_pre",
            )

        assert exc.value.existing_order_id == order_id
        assert fresh.claimant("payment:pi_pre") is None


class TestConcurrentCheckouts:
    def test_only_one_of_two_competing_orders_gets_the_stock(
        self, factory, ledger, customer_id, make_simple_product, make_address, run_concurrently
    ):
        product_id = make_simple_product(name="P", stock=3)
        address_id = make_address(customer_id)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=2))

        results = run_concurrently(
            lambda _: factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=address_id,
                payment_status=PaymentStatus.CASH_ON_DELIVERY.value,
            ),
            count=2,
        )

        outcomes = sorted(outcome for outcome, _ in results)
        assert outcomes == ["error", "ok"]
        error = next(value for outcome, value in results if outcome == "error")
        assert isinstance(error, InsufficientStockError)
        assert error.available == 1
        assert ledger.level(product_id, None) == 1

    def test_competing_deliveries_of_one_payment_create_one_order(
        self, factory, ledger, customer_id, make_simple_product, make_address, run_concurrently
    ):
        product_id = make_simple_product(stock=10)
        address_id = make_address(customer_id)
        lines = _resolve(ledger, LineReference(product_id=product_id, quantity=1))

        results = run_concurrently(
            lambda _: factory.create_order(
                customer_id=customer_id,
                lines=lines,
                delivery_address_id=address_id,
                payment_status=PaymentStatus.PAID.value,
                payment_id="pi_race",
                idempotency_key="payment:pi_race",
            ),
            count=4,
        )

        created = [value for outcome, value in results if outcome == "ok"]
        conflicts = [value for outcome, value in results if outcome == "error"]
        assert len(created) == 1
        assert all(isinstance(exc, IdempotencyConflict) for exc in conflicts)
        assert ledger.level(product_id, None) == 9
