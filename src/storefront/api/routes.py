"""FastAPI routes for the storefront — checkout, orders, products, addresses and carts."""

import json

from fastapi import APIRouter, Depends, Header, Request
from protean.utils.globals import current_domain

from storefront.api.dependencies import (
    current_customer,
    get_checkout_service,
    get_webhook_processor,
)
from storefront.api.schemas import (
    AddAddressRequest,
    AddressIdResponse,
    AddToCartRequest,
    CartItemResponse,
    CartResponse,
    CheckoutRequest,
    CreateProductRequest,
    ItemIdResponse,
    OrderResponse,
    PaymentSessionResponse,
    ProductIdResponse,
    ProductResponse,
    RepriceProductRequest,
    StatusResponse,
    StatusUpdateResponse,
    StockLevelRequest,
    UpdateCartQuantityRequest,
    UpdateStatusRequest,
    VariationPriceRequest,
    VariationResponse,
    WebhookResponse,
)
from storefront.cart.cart import ShoppingCart
from storefront.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from storefront.catalogue.management import (
    ChangeVariationPrice,
    CreateProduct,
    DeleteProduct,
    RemoveVariation,
    RepriceProduct,
    SetStockLevel,
    load_product,
)
from storefront.checkout.resolver import LineReference
from storefront.checkout.service import CheckoutService
from storefront.customer.address import AddAddress
from storefront.errors import IdempotencyConflict, OrderNotFound
from storefront.inventory.ledger import get_ledger
from storefront.order.order import Order
from storefront.order.status import UpdateOrderStatus
from storefront.payments.webhook import PaymentWebhookProcessor


def _line_references(body: CheckoutRequest) -> list[LineReference] | None:
    if body.list_items is None:
        return None
    return [
        LineReference(
            product_id=item.product_id,
            quantity=item.quantity,
            variation_id=item.variation_id,
            selected_size=item.selected_size,
        )
        for item in body.list_items
    ]


def _load_order(order_id: str) -> Order:
    order = current_domain.repository_for(Order).find_by_id(order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return order


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/order", tags=["orders"])


@order_router.post("/cash-on-delivery", status_code=201, response_model=OrderResponse)
async def cash_on_delivery(
    body: CheckoutRequest,
    customer_id: str = Depends(current_customer),
    checkout: CheckoutService = Depends(get_checkout_service),
) -> OrderResponse:
    """Place a cash-on-delivery order; stock is taken immediately."""
    order_id = checkout.cash_on_delivery(
        customer_id=customer_id,
        address_id=body.address_id,
        items=_line_references(body),
        idempotency_key=body.idempotency_key,
    )
    order = current_domain.repository_for(Order).find_by_id(order_id)
    if order is None:
        # A replay whose original request has not finished yet
        raise IdempotencyConflict(body.idempotency_key or "", order_id)
    return OrderResponse.from_order(order)


@order_router.post("/create-payment-session", response_model=PaymentSessionResponse)
async def create_payment_session(
    body: CheckoutRequest,
    customer_id: str = Depends(current_customer),
    checkout: CheckoutService = Depends(get_checkout_service),
) -> PaymentSessionResponse:
    """Open a hosted payment page for the cart; the order follows the webhook."""
    session = checkout.create_payment_session(
        customer_id=customer_id,
        address_id=body.address_id,
        items=_line_references(body),
        customer_email=body.customer_email,
        idempotency_key=body.idempotency_key,
    )
    return PaymentSessionResponse(url=session.url, session_id=session.session_id)


@order_router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    stripe_signature: str = Header(default=""),
    processor: PaymentWebhookProcessor = Depends(get_webhook_processor),
) -> WebhookResponse:
    """Receive payment gateway events. Only an invalid signature is refused."""
    payload = await request.body()
    processor.handle(payload, stripe_signature)
    return WebhookResponse(received=True)


@order_router.put("/update-status/{order_id}", response_model=StatusUpdateResponse)
@order_router.put("/admin/update-status/{order_id}", response_model=StatusUpdateResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> StatusUpdateResponse:
    command = UpdateOrderStatus(order_id=order_id, status=body.status)
    current_domain.process(command, asynchronous=False)
    order = _load_order(order_id)
    return StatusUpdateResponse(order_id=str(order.id), status=order.status, updated_at=order.updated_at)


@order_router.get("/details/{order_id}", response_model=OrderResponse)
async def order_details(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(_load_order(order_id))


@order_router.get("/order-list", response_model=list[OrderResponse])
async def customer_orders(customer_id: str = Depends(current_customer)) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).for_customer(customer_id)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/all", response_model=list[OrderResponse])
async def all_orders() -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).everything()
    return [OrderResponse.from_order(order) for order in orders]


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        name=body.name,
        price=body.price,
        discount=body.discount,
        images=json.dumps(body.images),
        variations=json.dumps([v.model_dump() for v in body.variations]) if body.variations else None,
        stock=body.stock,
        sizing_type=body.sizing_type,
        publish=body.publish,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = load_product(product_id)
    ledger = get_ledger()
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        price=product.price,
        discount=product.discount,
        has_variations=product.has_variations,
        images=product.image_urls,
        variations=[
            VariationResponse(
                variation_id=str(v.id),
                size=v.size,
                price=v.price,
                sku=v.sku,
                stock=ledger.level(str(product.id), str(v.id)),
            )
            for v in product.variations
        ],
        stock=None if product.has_variations else ledger.level(str(product.id), None),
        sizing_type=product.sizing_type,
        publish=product.publish,
    )


@product_router.put("/{product_id}/pricing", response_model=StatusResponse)
async def reprice_product(product_id: str, body: RepriceProductRequest) -> StatusResponse:
    command = RepriceProduct(product_id=product_id, price=body.price, discount=body.discount)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="repriced")


@product_router.put("/{product_id}/variations/{variation_id}/price", response_model=StatusResponse)
async def change_variation_price(product_id: str, variation_id: str, body: VariationPriceRequest) -> StatusResponse:
    command = ChangeVariationPrice(product_id=product_id, variation_id=variation_id, price=body.price)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="repriced")


@product_router.delete("/{product_id}/variations/{variation_id}", response_model=StatusResponse)
async def remove_variation(product_id: str, variation_id: str) -> StatusResponse:
    command = RemoveVariation(product_id=product_id, variation_id=variation_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="removed")


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def set_stock_level(product_id: str, body: StockLevelRequest) -> StatusResponse:
    command = SetStockLevel(product_id=product_id, variation_id=body.variation_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="stock_set")


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str) -> StatusResponse:
    current_domain.process(DeleteProduct(product_id=product_id), asynchronous=False)
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Address Router
# ---------------------------------------------------------------------------
address_router = APIRouter(prefix="/addresses", tags=["addresses"])


@address_router.post("", status_code=201, response_model=AddressIdResponse)
async def add_address(body: AddAddressRequest, customer_id: str = Depends(current_customer)) -> AddressIdResponse:
    command = AddAddress(customer_id=customer_id, **body.model_dump())
    result = current_domain.process(command, asynchronous=False)
    return AddressIdResponse(address_id=result)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(customer_id: str = Depends(current_customer)) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
    items = cart.items if cart is not None else []
    return CartResponse(
        customer_id=customer_id,
        items=[
            CartItemResponse(
                item_id=str(item.id),
                product_id=str(item.product_id),
                variation_id=item.variation_id,
                selected_size=item.selected_size,
                quantity=item.quantity,
            )
            for item in items
        ],
    )


@cart_router.post("/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(body: AddToCartRequest, customer_id: str = Depends(current_customer)) -> ItemIdResponse:
    command = AddToCart(
        customer_id=customer_id,
        product_id=body.product_id,
        variation_id=body.variation_id,
        selected_size=body.selected_size,
        quantity=body.quantity,
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@cart_router.put("/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(
    item_id: str,
    body: UpdateCartQuantityRequest,
    customer_id: str = Depends(current_customer),
) -> StatusResponse:
    command = UpdateCartQuantity(customer_id=customer_id, item_id=item_id, new_quantity=body.new_quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@cart_router.delete("/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(item_id: str, customer_id: str = Depends(current_customer)) -> StatusResponse:
    current_domain.process(RemoveFromCart(customer_id=customer_id, item_id=item_id), asynchronous=False)
    return StatusResponse(status="removed")
