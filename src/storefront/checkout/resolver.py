"""Cart snapshot resolver.

Turns cart lines, which carry references only, into priced lines read from
the live catalogue. The resolved lines are what an order freezes: their unit
price is the post-discount price at the moment of resolution.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.catalogue.management import load_product
from storefront.inventory.ledger.port import StockLedger


@dataclass(frozen=True)
class LineReference:
    """What a cart line (or a checkout request item) points at."""

    product_id: str
    quantity: int
    variation_id: str | None = None
    selected_size: str | None = None


@dataclass(frozen=True)
class ResolvedLine:
    product_id: str
    name: str
    quantity: int
    unit_price: float
    variation_id: str | None = None
    selected_size: str | None = None
    images: tuple[str, ...] = field(default_factory=tuple)
    available_stock: int | None = None  # None when stock is untracked

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data["images"] = list(self.images)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ResolvedLine":
        return cls(
            product_id=str(data["product_id"]),
            name=data["name"],
            quantity=int(data["quantity"]),
            unit_price=float(data["unit_price"]),
            variation_id=data.get("variation_id") or None,
            selected_size=data.get("selected_size") or None,
            images=tuple(data.get("images") or ()),
            available_stock=data.get("available_stock"),
        )


class CartSnapshotResolver:
    def __init__(self, ledger: StockLedger) -> None:
        self.ledger = ledger

    def resolve(self, customer_id) -> list[ResolvedLine]:
        """Resolve every line of the customer's server-side cart."""
        cart = current_domain.repository_for(ShoppingCart).for_customer(customer_id)
        items = cart.items if cart is not None else []
        return self.resolve_lines(
            LineReference(
                product_id=str(item.product_id),
                quantity=item.quantity,
                variation_id=item.variation_id,
                selected_size=item.selected_size,
            )
            for item in items
        )

    def resolve_lines(self, references: Iterable[LineReference]) -> list[ResolvedLine]:
        resolved = [self.resolve_line(reference) for reference in references]
        if not resolved:
            raise ValidationError({"list_items": ["No items in order"]})
        return resolved

    def resolve_line(self, reference: LineReference) -> ResolvedLine:
        if reference.quantity is None or reference.quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        product = load_product(reference.product_id)
        variation = product.find_variation(
            variation_id=reference.variation_id,
            selected_size=reference.selected_size,
        )
        variation_id = str(variation.id) if variation else None

        return ResolvedLine(
            product_id=str(product.id),
            name=product.name,
            quantity=reference.quantity,
            unit_price=product.unit_price(variation),
            variation_id=variation_id,
            selected_size=variation.size if variation else None,
            images=tuple(product.image_urls),
            available_stock=self.ledger.level(str(product.id), variation_id),
        )
