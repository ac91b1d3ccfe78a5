"""In-process Order Service adapter.

Dispatches straight into the ordering domain, for single-process
deployments and tests that do not need the HTTP hop. The domain must
already be initialized (``ordering.init()``, as ``app.py`` does).
"""

from protean.exceptions import ValidationError
from shared.orders import OrderLine, OrderView, PlacedOrder, PlaceOrderRequest, StockShortage

from ordering.auth import InvalidToken, get_verifier
from ordering.domain import ordering
from ordering.order.history import orders_for_customer, to_view
from ordering.order.placement import submit_order
from ordering.stock import get_stock
from storefront.orders.port import OrderService, OrderServiceError


class LocalOrderService(OrderService):
    def __init__(self, domain=ordering) -> None:
        self.domain = domain

    def _customer(self, auth_token: str) -> str:
        try:
            return get_verifier().verify(auth_token)
        except InvalidToken as exc:
            raise OrderServiceError(f"Not authorized, {exc}", status_code=401, retryable=False) from exc

    async def create_order(self, auth_token: str, request: PlaceOrderRequest) -> PlacedOrder:
        customer_id = self._customer(auth_token)
        with self.domain.domain_context():
            try:
                return submit_order(customer_id, request)
            except ValidationError as exc:
                raise OrderServiceError(f"Order rejected: {exc.messages}", status_code=400, retryable=False) from exc

    async def list_orders(self, auth_token: str) -> list[OrderView]:
        customer_id = self._customer(auth_token)
        with self.domain.domain_context():
            return [to_view(order) for order in orders_for_customer(customer_id)]

    async def check_stock(self, auth_token: str, items: list[OrderLine]) -> list[StockShortage]:
        self._customer(auth_token)
        return get_stock().shortages(items)
