"""Order Service port (abstract interface).

The storefront reaches the authoritative order store only through this
contract: place an order for the signed-in customer, list their orders, and
ask for stock shortages before a card is charged.
"""

from abc import ABC, abstractmethod

from shared.orders import OrderLine, OrderView, PlacedOrder, PlaceOrderRequest, StockShortage


class OrderServiceError(Exception):
    """The Order Service refused the request or could not be reached.

    ``retryable`` is false when the service rejected the request itself
    (validation, authentication); resubmitting the same request would fail
    the same way.
    """

    def __init__(self, reason: str, status_code: int | None = None, retryable: bool = True) -> None:
        self.reason = reason
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(reason)


class OrderService(ABC):
    @abstractmethod
    async def create_order(self, auth_token: str, request: PlaceOrderRequest) -> PlacedOrder:
        """Record an order. Idempotent on ``request.payment_reference``."""
        ...

    @abstractmethod
    async def list_orders(self, auth_token: str) -> list[OrderView]:
        """The signed-in customer's orders, newest first."""
        ...

    @abstractmethod
    async def check_stock(self, auth_token: str, items: list[OrderLine]) -> list[StockShortage]:
        """Products that cannot be supplied in the requested quantity; empty when all can."""
        ...
