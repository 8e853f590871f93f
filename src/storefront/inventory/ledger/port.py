"""Inventory ledger port (abstract interface).

The ledger owns every stock counter, keyed by ``(product_id, variation_id)``
with ``""`` standing in for "no variation". Counters are changed only through
the composed operations below: a decrement is one conditional update
("subtract N if at least N remain"), never a read followed by a write.

Keys that were never given a level are untracked and always available. This
is how simple products created without a stock figure behave.

The ledger also arbitrates idempotency. ``claim`` is an insert-if-absent on a
unique key (a payment intent id or a checkout request key): exactly one caller
wins, whatever the interleaving.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


def stock_key(product_id: str, variation_id: str | None) -> tuple[str, str]:
    return str(product_id), str(variation_id or "")


@dataclass(frozen=True)
class Availability:
    """Result of a read-only availability check."""

    available: bool
    quantity: int | None = None  # None when the key is untracked


@dataclass(frozen=True)
class StockMovement:
    """Result of a conditional decrement."""

    ok: bool
    remaining: int | None = None
    available: int | None = None  # Set when the decrement was refused


class StockLedger(ABC):
    """Abstract inventory ledger."""

    @abstractmethod
    def set_level(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        """Set a counter to an absolute level. Administrative use only."""
        ...

    @abstractmethod
    def forget(self, product_id: str, variation_id: str | None = None) -> None:
        """Drop one variation's counter, or every counter of the product when no variation is given."""
        ...

    @abstractmethod
    def level(self, product_id: str, variation_id: str | None) -> int | None:
        """Current level, or None for an untracked key."""
        ...

    @abstractmethod
    def decrement(self, product_id: str, variation_id: str | None, quantity: int) -> StockMovement:
        """Atomically subtract ``quantity`` iff at least that much remains."""
        ...

    @abstractmethod
    def increment(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        """Return stock to a counter (compensation, restock)."""
        ...

    @abstractmethod
    def claim(self, key: str, order_id: str) -> bool:
        """Record ``order_id`` against ``key`` unless the key is already taken."""
        ...

    @abstractmethod
    def release_claim(self, key: str, order_id: str) -> None:
        """Drop a claim, but only if ``order_id`` still holds it."""
        ...

    @abstractmethod
    def claimant(self, key: str) -> str | None:
        """The order id holding ``key``, if any."""
        ...

    def check_availability(self, product_id: str, variation_id: str | None, quantity: int) -> Availability:
        """Read-only check used to quote a checkout; never a basis for a write."""
        current = self.level(product_id, variation_id)
        if current is None:
            return Availability(available=True)
        return Availability(available=current >= quantity, quantity=current)
