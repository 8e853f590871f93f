"""Inventory ledger factory.

Provides get_ledger() / set_ledger() to swap implementations:
- MemoryStockLedger for development and testing
- SqlStockLedger when STOREFRONT_LEDGER_URL points at a database
"""

from sqlalchemy import create_engine

from storefront.config import get_settings
from storefront.inventory.ledger.memory_adapter import MemoryStockLedger
from storefront.inventory.ledger.port import Availability, StockLedger, StockMovement
from storefront.inventory.ledger.sql_adapter import SqlStockLedger

__all__ = [
    "Availability",
    "MemoryStockLedger",
    "SqlStockLedger",
    "StockLedger",
    "StockMovement",
    "get_ledger",
    "reset_ledger",
    "set_ledger",
]

_current_ledger: StockLedger | None = None


def get_ledger() -> StockLedger:
    """Return the active ledger, building the configured default on first use."""
    global _current_ledger
    if _current_ledger is None:
        url = get_settings().ledger_url
        if url:
            ledger = SqlStockLedger(create_engine(url))
            ledger.create_schema()
            _current_ledger = ledger
        else:
            _current_ledger = MemoryStockLedger()
    return _current_ledger


def set_ledger(ledger: StockLedger) -> None:
    """Override the active ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    """Reset to the default ledger."""
    global _current_ledger
    _current_ledger = None
