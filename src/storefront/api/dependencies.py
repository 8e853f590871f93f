"""FastAPI dependencies wiring the services to their collaborators.

Tests swap collaborators with ``set_ledger()`` / ``set_gateway()`` or with
``app.dependency_overrides``.
"""

from fastapi import Depends, Header, HTTPException

from storefront.checkout.factory import OrderFactory
from storefront.checkout.resolver import CartSnapshotResolver
from storefront.checkout.service import CheckoutService
from storefront.config import get_settings
from storefront.inventory.ledger import get_ledger
from storefront.payments.gateway import get_gateway
from storefront.payments.webhook import PaymentWebhookProcessor


def current_customer(x_customer_id: str = Header(default="")) -> str:
    """Customer id set by the authentication layer in front of the API."""
    if not x_customer_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_customer_id


def get_order_factory() -> OrderFactory:
    return OrderFactory(get_ledger(), timeout_seconds=get_settings().checkout_timeout_seconds)


def get_checkout_service(factory: OrderFactory = Depends(get_order_factory)) -> CheckoutService:
    return CheckoutService(
        resolver=CartSnapshotResolver(factory.ledger),
        factory=factory,
        gateway=get_gateway(),
    )


def get_webhook_processor(factory: OrderFactory = Depends(get_order_factory)) -> PaymentWebhookProcessor:
    return PaymentWebhookProcessor(gateway=get_gateway(), factory=factory)
