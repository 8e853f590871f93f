"""Storefront bounded context — catalogue, carts, checkout and orders.

Turns a customer's cart into a durable order while keeping per-variant stock
counters non-negative and payment confirmations idempotent.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
