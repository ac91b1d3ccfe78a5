"""Stock levels factory.

Provides get_stock() / set_stock() / reset_stock() to swap implementations.
Uses InMemoryStock by default; configure via the STOCK_ADAPTER environment
variable.
"""

import os

from ordering.stock.port import StockLevels

_current_stock: StockLevels | None = None

__all__ = ["StockLevels", "get_stock", "reset_stock", "set_stock"]


def get_stock() -> StockLevels:
    """Return the configured stock store (singleton)."""
    global _current_stock
    if _current_stock is None:
        adapter = os.environ.get("STOCK_ADAPTER", "memory")
        if adapter == "memory":
            from ordering.stock.memory_adapter import InMemoryStock

            _current_stock = InMemoryStock()
        else:
            raise ValueError(f"Unknown stock adapter: {adapter}")
    return _current_stock


def set_stock(stock: StockLevels) -> None:
    """Override the active stock store (useful for tests)."""
    global _current_stock
    _current_stock = stock


def reset_stock() -> None:
    """Reset to the configured default."""
    global _current_stock
    _current_stock = None
