import json
import threading
from uuid import uuid4

import pytest
from protean.utils.globals import current_domain

from storefront.catalogue.management import CreateProduct
from storefront.customer.address import AddAddress
from storefront.inventory.ledger import MemoryStockLedger, reset_ledger, set_ledger
from storefront.payments.gateway import reset_gateway, set_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway


@pytest.fixture(scope="session")
def _storefront_domain():
    """Initialize the storefront domain once per session."""
    from storefront.domain import storefront

    storefront.init()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()

    ctx.pop()


@pytest.fixture(autouse=True)
def ledger():
    ledger = MemoryStockLedger()
    set_ledger(ledger)
    yield ledger
    reset_ledger()


@pytest.fixture(autouse=True)
def gateway():
    gateway = FakeGateway(webhook_secret="whsec_test")
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture
def customer_id():
    return f"cust-{uuid4().hex[:8]}"


@pytest.fixture
def make_simple_product():
    def _make(name="Canvas Tote", price=100.0, stock=10, discount=0.0):
        return current_domain.process(
            CreateProduct(
                name=name,
                price=price,
                stock=stock,
                discount=discount,
                images=json.dumps(["https://cdn.test/tote.jpg"]),
            ),
            asynchronous=False,
        )

    return _make


@pytest.fixture
def make_variant_product():
    def _make(name="Linen Shirt", variations=None, discount=0.0):
        variations = variations or [{"size": "L", "price": 100.0, "stock": 5}]
        return current_domain.process(
            CreateProduct(name=name, variations=json.dumps(variations), discount=discount),
            asynchronous=False,
        )

    return _make


@pytest.fixture
def make_address():
    def _make(customer_id):
        return current_domain.process(
            AddAddress(
                customer_id=customer_id,
                address_line="12 MG Road",
                city="Bengaluru",
                state="Karnataka",
                pincode="560001",
                country="India",
                mobile="9999999999",
            ),
            asynchronous=False,
        )

    return _make


@pytest.fixture
def run_concurrently(_storefront_domain):
    """Run ``fn(index)`` in ``count`` threads released together.

    Each worker pushes its own domain context. Returns ``(outcome, value)``
    pairs where outcome is "ok" or "error".
    """
    def _run(fn, count):
        barrier = threading.Barrier(count)
        results = [None] * count

        def worker(index):
            with _storefront_domain.domain_context():
                barrier.wait()
                try:
                    results[index] = ("ok", fn(index))
                except Exception as exc:
                    results[index] = ("error", exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results

    return _run
