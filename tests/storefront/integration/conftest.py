import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import address_router, cart_router, order_router, product_router, register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(product_router)
    app.include_router(address_router)
    app.include_router(cart_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def as_customer(customer_id):
    return {"X-Customer-Id": customer_id}
