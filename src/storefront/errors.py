"""Storefront error taxonomy.

Request-shape problems and unrecognised statuses are reported with protean's
``ValidationError``; a missing aggregate looked up by id surfaces as protean's
``ObjectNotFoundError``. The errors below cover the outcomes checkout and the
payment webhook have to tell apart.
"""


class StorefrontError(Exception):
    """Base class for storefront business errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(StorefrontError):
    """A referenced product, variation or address does not resolve."""


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: str, name: str | None = None) -> None:
        super().__init__(f"Product {name or product_id} not found")
        self.product_id = product_id


class VariationNotFound(NotFoundError):
    def __init__(self, product_id: str, product_name: str, variation: str | None = None) -> None:
        super().__init__(f"Selected variation for {product_name} not found")
        self.product_id = product_id
        self.variation = variation


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__("Order not found")
        self.order_id = order_id


class AddressNotFound(NotFoundError):
    def __init__(self, address_id: str) -> None:
        super().__init__("Delivery address not found")
        self.address_id = address_id


class VariationRequired(StorefrontError):
    """A product with variations was referenced without a size."""

    def __init__(self, product_id: str, product_name: str) -> None:
        super().__init__(f"Please select a size for {product_name}")
        self.product_id = product_id


class InsufficientStockError(StorefrontError):
    """The ledger refused a decrement; the whole order fails."""

    def __init__(
        self,
        product_id: str,
        name: str,
        available: int,
        requested: int,
        variation_id: str | None = None,
        size: str | None = None,
    ) -> None:
        if size:
            message = f"Only {available} units of {name} ({size}) available in stock"
        else:
            message = f"Only {available} units of {name} available in stock"
        super().__init__(message)
        self.product_id = product_id
        self.variation_id = variation_id
        self.name = name
        self.size = size
        self.available = available
        self.requested = requested


class IdempotencyConflict(StorefrontError):
    """The payment intent or request key already produced an order."""

    def __init__(self, key: str, existing_order_id: str | None) -> None:
        super().__init__(f"Key {key} was already processed")
        self.key = key
        self.existing_order_id = existing_order_id


class SignatureError(StorefrontError):
    """A webhook payload failed the gateway's authenticity check."""


class TransientStorageError(StorefrontError):
    """Storage was unreachable or too slow; the caller may retry."""


class CheckoutTimeout(TransientStorageError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Checkout did not complete within {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds
