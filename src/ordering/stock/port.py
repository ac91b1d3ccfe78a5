"""Stock levels port (abstract interface).

Placement takes stock for every line of an order, and the storefront asks for
shortages before it charges a card. Products without a recorded level are not
stock-tracked and never run short.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from shared.orders import StockShortage


def requested_quantities(lines: Iterable) -> dict[str, tuple[str, int]]:
    """Total quantity per product over order lines, keyed by product id.

    Lines are anything with ``product_id``, ``name`` and ``quantity``.
    """
    requested: dict[str, tuple[str, int]] = {}
    for line in lines:
        product_id = str(line.product_id)
        name, quantity = requested.get(product_id, (line.name, 0))
        requested[product_id] = (name, quantity + line.quantity)
    return requested


class StockLevels(ABC):
    """Abstract stock store."""

    @abstractmethod
    def level(self, product_id: str) -> int | None:
        """Units on hand, or None when the product is not tracked."""
        ...

    @abstractmethod
    def set_level(self, product_id: str, quantity: int) -> None: ...

    @abstractmethod
    def reserve(self, lines: Iterable) -> list[StockShortage]:
        """Take stock for every line, or for none when any product is short.

        Returns:
            The shortages that prevented the reservation; empty on success.
        """
        ...

    @abstractmethod
    def release(self, lines: Iterable) -> None:
        """Give back stock taken by ``reserve``."""
        ...

    def shortages(self, lines: Iterable) -> list[StockShortage]:
        shortages = []
        for product_id, (name, quantity) in requested_quantities(lines).items():
            available = self.level(product_id)
            if available is not None and available < quantity:
                shortages.append(
                    StockShortage(product_id=product_id, name=name, requested=quantity, available=available)
                )
        return shortages
