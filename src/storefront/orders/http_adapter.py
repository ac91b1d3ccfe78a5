"""HTTP Order Service adapter, talking to the ordering API with ``httpx``."""

import httpx
import structlog
from pydantic import ValidationError
from shared.orders import OrderLine, OrderView, PlacedOrder, PlaceOrderRequest, StockShortage

from storefront.orders.port import OrderService, OrderServiceError

logger = structlog.get_logger(__name__)


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


class HttpOrderService(OrderService):
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _request(self, method: str, path: str, auth_token: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {auth_token}"}
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Order Service unreachable", method=method, path=path, error=str(exc))
            raise OrderServiceError(f"Order Service unreachable: {exc}") from exc

        if response.is_error:
            reason = _detail(response)
            logger.warning("Order Service error", method=method, path=path, status_code=response.status_code)
            raise OrderServiceError(
                reason,
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        return response

    async def create_order(self, auth_token: str, request: PlaceOrderRequest) -> PlacedOrder:
        response = await self._request("POST", "/orders", auth_token, json=request.model_dump(mode="json"))
        try:
            return PlacedOrder.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise OrderServiceError(f"Unexpected Order Service response: {exc}") from exc

    async def list_orders(self, auth_token: str) -> list[OrderView]:
        response = await self._request("GET", "/orders", auth_token)
        try:
            return [OrderView.model_validate(order) for order in response.json()["orders"]]
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            raise OrderServiceError(f"Unexpected Order Service response: {exc}") from exc

    async def check_stock(self, auth_token: str, items: list[OrderLine]) -> list[StockShortage]:
        payload = {"items": [line.model_dump(mode="json") for line in items]}
        response = await self._request("POST", "/orders/stock-check", auth_token, json=payload)
        try:
            return [StockShortage.model_validate(shortage) for shortage in response.json()["shortages"]]
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            raise OrderServiceError(f"Unexpected Order Service response: {exc}") from exc
