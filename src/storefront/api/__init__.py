"""Storefront API package."""

from storefront.api.errors import register_error_handlers
from storefront.api.routes import address_router, cart_router, order_router, product_router

__all__ = ["address_router", "cart_router", "order_router", "product_router", "register_error_handlers"]
