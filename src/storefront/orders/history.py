"""Order History Query: the "My Orders" view.

Filters the customer's fetched orders by status and pages through them
client-side. The list itself is read-only; it is replaced wholesale on
refresh.
"""

import math
from collections.abc import Sequence

from shared.orders import OrderStatus, OrderView

ALL = "all"
DEFAULT_PAGE_SIZE = 3


class OrderHistory:
    def __init__(self, orders: Sequence[OrderView] = (), page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.status_filter = ALL
        self.page = 1
        self._orders: tuple[OrderView, ...] = tuple(orders)

    @classmethod
    async def load(cls, order_service, auth_token: str, page_size: int = DEFAULT_PAGE_SIZE) -> "OrderHistory":
        return cls(await order_service.list_orders(auth_token), page_size=page_size)

    def replace(self, orders: Sequence[OrderView]) -> None:
        """Swap in a freshly fetched list, keeping the filter and a valid page."""
        self._orders = tuple(orders)
        self.go_to(self.page)

    @property
    def filtered(self) -> tuple[OrderView, ...]:
        if self.status_filter == ALL:
            return self._orders
        return tuple(order for order in self._orders if order.order_status.value == self.status_filter)

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered) / self.page_size))

    @property
    def current_orders(self) -> tuple[OrderView, ...]:
        start = (self.page - 1) * self.page_size
        return self.filtered[start : start + self.page_size]

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def set_filter(self, status) -> None:
        """Filter by an order status or ``"all"``; always returns to page 1."""
        if isinstance(status, OrderStatus):
            status = status.value
        if status != ALL:
            status = OrderStatus(status).value
        self.status_filter = status
        self.page = 1

    def go_to(self, page: int) -> int:
        self.page = min(max(1, page), self.total_pages)
        return self.page

    def next_page(self) -> int:
        return self.go_to(self.page + 1)

    def previous_page(self) -> int:
        return self.go_to(self.page - 1)
