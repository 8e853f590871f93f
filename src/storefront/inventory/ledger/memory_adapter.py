"""In-process inventory ledger for development and tests.

The dictionaries are the storage; the lock belongs to the store and makes
each composed operation a single atomic step, the way a database row lock
would.
"""

import threading

from storefront.inventory.ledger.port import StockLedger, StockMovement, stock_key


class MemoryStockLedger(StockLedger):
    def __init__(self) -> None:
        self._levels: dict[tuple[str, str], int] = {}
        self._claims: dict[str, str] = {}
        self._lock = threading.Lock()

    def set_level(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("Stock level cannot be negative")
        with self._lock:
            self._levels[stock_key(product_id, variation_id)] = quantity

    def forget(self, product_id: str, variation_id: str | None = None) -> None:
        with self._lock:
            if variation_id is not None:
                self._levels.pop(stock_key(product_id, variation_id), None)
                return
            for key in [k for k in self._levels if k[0] == str(product_id)]:
                del self._levels[key]

    def level(self, product_id: str, variation_id: str | None) -> int | None:
        with self._lock:
            return self._levels.get(stock_key(product_id, variation_id))

    def decrement(self, product_id: str, variation_id: str | None, quantity: int) -> StockMovement:
        key = stock_key(product_id, variation_id)
        with self._lock:
            current = self._levels.get(key)
            if current is None:
                return StockMovement(ok=True)
            if current < quantity:
                return StockMovement(ok=False, available=current)
            self._levels[key] = current - quantity
            return StockMovement(ok=True, remaining=current - quantity)

    def increment(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        key = stock_key(product_id, variation_id)
        with self._lock:
            if key in self._levels:
                self._levels[key] += quantity

    def claim(self, key: str, order_id: str) -> bool:
        with self._lock:
            if key in self._claims:
                return False
            self._claims[key] = order_id
            return True

    def release_claim(self, key: str, order_id: str) -> None:
        with self._lock:
            if self._claims.get(key) == order_id:
                del self._claims[key]

    def claimant(self, key: str) -> str | None:
        with self._lock:
            return self._claims.get(key)
