"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Checkout bodies accept the camelCase names the
storefront client sends as well as snake_case.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from storefront.order.order import Order


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: int = Field(default=1, ge=1)
    variation_id: str | None = Field(default=None, alias="variationId")
    selected_size: str | None = Field(default=None, alias="selectedSize")


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "list_items": [{"productId": "prod-001", "quantity": 2, "selectedSize": "L"}],
                    "addressId": "addr-001",
                    "totalAmt": 180.0,
                    "subTotalAmt": 180.0,
                }
            ]
        },
    )

    list_items: list[OrderItemRequest] | None = None
    address_id: str = Field(alias="addressId")
    total_amt: float | None = Field(default=None, alias="totalAmt")
    sub_total_amt: float | None = Field(default=None, alias="subTotalAmt")
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")
    customer_email: str | None = Field(default=None, alias="customerEmail")


class PaymentSessionResponse(BaseModel):
    url: str
    session_id: str


class WebhookResponse(BaseModel):
    received: bool = True


class UpdateStatusRequest(BaseModel):
    status: str


class StatusUpdateResponse(BaseModel):
    order_id: str
    status: str
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineItemResponse(BaseModel):
    product_id: str
    name: str
    images: list[str] = []
    quantity: int
    unit_price: float
    variation_id: str | None = None
    selected_size: str | None = None


class StatusChangeResponse(BaseModel):
    from_status: str | None = None
    to_status: str
    changed_at: datetime


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    payment_id: str
    payment_status: str
    delivery_address_id: str
    sub_total: float
    total: float
    line_items: list[OrderLineItemResponse]
    status_history: list[StatusChangeResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            status=order.status,
            payment_id=order.payment_id or "",
            payment_status=order.payment_status,
            delivery_address_id=str(order.delivery_address_id),
            sub_total=order.sub_total,
            total=order.total,
            line_items=[
                OrderLineItemResponse(
                    product_id=str(item.product_id),
                    name=item.name,
                    images=json.loads(item.images) if item.images else [],
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    variation_id=item.variation_id,
                    selected_size=item.selected_size,
                )
                for item in order.line_items
            ],
            status_history=[
                StatusChangeResponse(
                    from_status=change.from_status,
                    to_status=change.to_status,
                    changed_at=change.changed_at,
                )
                for change in sorted(order.status_history, key=lambda c: c.changed_at)
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class VariationSchema(BaseModel):
    size: str
    price: float = Field(ge=0)
    sku: str | None = None
    stock: int = Field(default=0, ge=0)


class CreateProductRequest(BaseModel):
    name: str
    price: float | None = Field(default=None, ge=0)
    discount: float = Field(default=0.0, ge=0, le=100)
    images: list[str] = []
    variations: list[VariationSchema] = []
    stock: int | None = Field(default=None, ge=0)
    sizing_type: str | None = None
    publish: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Linen Shirt",
                    "discount": 10,
                    "images": ["https://cdn.example.com/linen.jpg"],
                    "variations": [
                        {"size": "M", "price": 100.0, "stock": 5},
                        {"size": "L", "price": 100.0, "stock": 5},
                    ],
                }
            ]
        }
    }


class RepriceProductRequest(BaseModel):
    price: float | None = Field(default=None, ge=0)
    discount: float | None = Field(default=None, ge=0, le=100)


class VariationPriceRequest(BaseModel):
    price: float = Field(ge=0)


class StockLevelRequest(BaseModel):
    quantity: int = Field(ge=0)
    variation_id: str | None = None


class VariationResponse(BaseModel):
    variation_id: str
    size: str
    price: float
    sku: str | None = None
    stock: int | None = None


class ProductResponse(BaseModel):
    product_id: str
    name: str
    price: float | None = None
    discount: float
    has_variations: bool
    images: list[str] = []
    variations: list[VariationResponse] = []
    stock: int | None = None
    sizing_type: str
    publish: bool


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Addresses and carts
# ---------------------------------------------------------------------------
class AddAddressRequest(BaseModel):
    address_line: str
    city: str
    state: str | None = None
    pincode: str
    country: str
    mobile: str | None = None


class AddressIdResponse(BaseModel):
    address_id: str


class AddToCartRequest(BaseModel):
    product_id: str
    variation_id: str | None = None
    selected_size: str | None = None
    quantity: int = Field(default=1, ge=1)


class UpdateCartQuantityRequest(BaseModel):
    new_quantity: int = Field(ge=1)


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    variation_id: str | None = None
    selected_size: str | None = None
    quantity: int


class CartResponse(BaseModel):
    customer_id: str
    items: list[CartItemResponse] = []


class ItemIdResponse(BaseModel):
    item_id: str


class StatusResponse(BaseModel):
    status: str = "ok"
