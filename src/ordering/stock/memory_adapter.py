"""In-memory stock levels, for development, tests and single-process deployments."""

import threading
from collections.abc import Iterable, Mapping

import structlog
from shared.orders import StockShortage

from ordering.stock.port import StockLevels, requested_quantities

logger = structlog.get_logger(__name__)


class InMemoryStock(StockLevels):
    def __init__(self, levels: Mapping[str, int] | None = None) -> None:
        self._levels: dict[str, int] = {}
        self._lock = threading.Lock()
        for product_id, quantity in (levels or {}).items():
            self.set_level(product_id, quantity)

    def level(self, product_id: str) -> int | None:
        return self._levels.get(str(product_id))

    def set_level(self, product_id: str, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("Stock cannot be negative")
        self._levels[str(product_id)] = quantity

    def reserve(self, lines: Iterable) -> list[StockShortage]:
        lines = list(lines)
        with self._lock:
            shortages = self.shortages(lines)
            if shortages:
                return shortages
            for product_id, (_, quantity) in requested_quantities(lines).items():
                if product_id in self._levels:
                    self._levels[product_id] -= quantity
                    logger.debug("Stock taken", product_id=product_id, quantity=quantity, left=self._levels[product_id])
        return []

    def release(self, lines: Iterable) -> None:
        with self._lock:
            for product_id, (_, quantity) in requested_quantities(lines).items():
                if product_id in self._levels:
                    self._levels[product_id] += quantity
