"""FastAPI routes for the Ordering domain — customer orders and operator updates."""

import hmac
import os

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain
from shared.orders import OrderView, PlacedOrder, PlaceOrderRequest

from ordering.api.schemas import (
    AdminOrderListResponse,
    OrderListResponse,
    OrderStats,
    StockCheckRequest,
    StockCheckResponse,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from ordering.auth import InvalidToken, get_verifier
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.history import (
    ALL_STATUSES,
    order_for_customer,
    orders_by_status,
    orders_for_customer,
    to_view,
)
from ordering.order.order import Order
from ordering.order.payment import UpdatePaymentStatus
from ordering.order.placement import submit_order
from ordering.stock import get_stock

BEARER_PREFIX = "Bearer "


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def current_customer(authorization: str = Header(default="")) -> str:
    """Resolve the bearer token to the calling customer's id."""
    if not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        return get_verifier().verify(authorization[len(BEARER_PREFIX) :])
    except InvalidToken as exc:
        raise HTTPException(status_code=401, detail=f"Not authorized, {exc}") from exc


def require_admin(x_admin_key: str = Header(default="")) -> None:
    expected = os.environ.get("ORDERING_ADMIN_KEY", "")
    if not expected or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=403, detail="Operator access required")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlacedOrder)
async def place_order(body: PlaceOrderRequest, customer_id: str = Depends(current_customer)) -> PlacedOrder:
    return submit_order(customer_id, body)


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(customer_id: str = Depends(current_customer)) -> OrderListResponse:
    orders = [to_view(order) for order in orders_for_customer(customer_id)]
    return OrderListResponse(count=len(orders), orders=orders)


@order_router.post("/stock-check", response_model=StockCheckResponse, dependencies=[Depends(current_customer)])
async def check_stock(body: StockCheckRequest) -> StockCheckResponse:
    shortages = get_stock().shortages(body.items)
    return StockCheckResponse(available=not shortages, shortages=shortages)


@order_router.get("/{order_id}", response_model=OrderView)
async def get_my_order(order_id: str, customer_id: str = Depends(current_customer)) -> OrderView:
    order = order_for_customer(order_id, customer_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return to_view(order)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("", response_model=AdminOrderListResponse)
async def list_orders(order_status: str = ALL_STATUSES) -> AdminOrderListResponse:
    orders, stats = orders_by_status(order_status)
    return AdminOrderListResponse(
        count=len(orders),
        stats=OrderStats(**stats),
        orders=[to_view(order) for order in orders],
    )


@admin_router.put("/{order_id}/status", response_model=OrderView)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderView:
    command = UpdateOrderStatus(
        order_id=order_id,
        order_status=body.order_status.value,
    )
    current_domain.process(command, asynchronous=False)
    return to_view(current_domain.repository_for(Order).get(order_id))


@admin_router.put("/{order_id}/payment-status", response_model=OrderView)
async def update_payment_status(order_id: str, body: UpdatePaymentStatusRequest) -> OrderView:
    command = UpdatePaymentStatus(
        order_id=order_id,
        payment_status=body.payment_status.value,
    )
    current_domain.process(command, asynchronous=False)
    return to_view(current_domain.repository_for(Order).get(order_id))
