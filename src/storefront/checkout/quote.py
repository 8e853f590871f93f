"""Frozen checkout quote carried through the payment gateway.

When an online checkout starts, the resolved lines are serialised into the
checkout session's metadata. The payment webhook replays exactly these lines,
so the shopper pays for and receives what they were quoted.
"""

import json
from dataclasses import dataclass

from protean.exceptions import ValidationError

from storefront.checkout.resolver import ResolvedLine


@dataclass(frozen=True)
class FrozenQuote:
    customer_id: str
    address_id: str
    lines: tuple[ResolvedLine, ...]

    @property
    def sub_total(self) -> float:
        return sum(line.line_total for line in self.lines)

    @property
    def total(self) -> float:
        return self.sub_total

    def to_metadata(self) -> dict[str, str]:
        """Gateway metadata is a flat mapping of strings."""
        lines = []
        for line in self.lines:
            data = line.to_dict()
            data.pop("available_stock")
            lines.append(data)

        return {
            "customer_id": self.customer_id,
            "address_id": self.address_id,
            "sub_total": f"{self.sub_total:.2f}",
            "total": f"{self.total:.2f}",
            "lines": json.dumps(lines),
            "stock_check": json.dumps(
                [
                    {
                        "product_id": line.product_id,
                        "variation_id": line.variation_id,
                        "available": line.available_stock,
                    }
                    for line in self.lines
                ]
            ),
        }

    @classmethod
    def from_metadata(cls, metadata: dict) -> "FrozenQuote":
        try:
            lines = tuple(ResolvedLine.from_dict(data) for data in json.loads(metadata["lines"]))
            customer_id = str(metadata["customer_id"])
            address_id = str(metadata["address_id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError({"metadata": [f"Malformed checkout metadata: {exc}"]}) from exc

        if not lines:
            raise ValidationError({"metadata": ["Checkout metadata carries no lines"]})
        return cls(customer_id=customer_id, address_id=address_id, lines=lines)
