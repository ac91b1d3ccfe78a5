"""Pydantic request/response schemas for the Ordering API.

Order payloads themselves (``PlaceOrderRequest``, ``PlacedOrder``,
``OrderView``) live in ``shared.orders`` because the storefront client speaks
the same contract. The envelopes below are specific to this API.
"""

from pydantic import BaseModel, Field
from shared.orders import OrderLine, OrderStatus, OrderView, PaymentStatus, StockShortage


# ---------------------------------------------------------------------------
# Customer schemas
# ---------------------------------------------------------------------------
class OrderListResponse(BaseModel):
    count: int
    orders: list[OrderView]


class StockCheckRequest(BaseModel):
    items: list[OrderLine] = Field(min_length=1)


class StockCheckResponse(BaseModel):
    available: bool
    shortages: list[StockShortage]


# ---------------------------------------------------------------------------
# Operator schemas
# ---------------------------------------------------------------------------
class OrderStats(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0
    pending_payments: int = 0


class AdminOrderListResponse(BaseModel):
    count: int
    stats: OrderStats
    orders: list[OrderView]


class UpdateOrderStatusRequest(BaseModel):
    order_status: OrderStatus

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_status": "shipped",
                }
            ]
        }
    }


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: PaymentStatus

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "payment_status": "completed",
                }
            ]
        }
    }
