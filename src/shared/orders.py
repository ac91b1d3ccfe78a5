"""Order contracts shared by the storefront client and the Order Service.

These pydantic models are the wire format of the Order Service API. The
storefront builds ``PlaceOrderRequest`` from its cart snapshot and only ever
holds ``OrderView`` copies; the ordering domain owns the authoritative record.
"""

import secrets
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CASH_ON_DELIVERY = "cod"

    @property
    def reference_prefix(self) -> str:
        """Prefix of client-synthesized references for methods without a gateway."""
        return _REFERENCE_PREFIXES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_REFERENCE_PREFIXES = {
    PaymentMethod.CARD: "CARD",
    PaymentMethod.BANK_TRANSFER: "BANK",
    PaymentMethod.CASH_ON_DELIVERY: "COD",
}

_DISPLAY_NAMES = {
    PaymentMethod.CARD: "Card Payment",
    PaymentMethod.BANK_TRANSFER: "Direct Bank Transfer",
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
}


class PaymentAttempt(BaseModel):
    """How an order was (or will be) paid.

    For cards the reference is the gateway authorization id. Methods without
    a gateway get a ``{PREFIX}-{epoch ms}-{4 hex}`` reference synthesized by
    the client; the random suffix keeps two orders placed in the same
    millisecond apart. Either way it is the idempotency key for order creation.
    """

    model_config = ConfigDict(frozen=True)

    method: PaymentMethod
    gateway_reference: str = Field(min_length=1)

    @classmethod
    def synthesized(cls, method: PaymentMethod, epoch_seconds: float) -> "PaymentAttempt":
        reference = f"{method.reference_prefix}-{int(epoch_seconds * 1000)}-{secrets.token_hex(2)}"
        return cls(method=method, gateway_reference=reference)


# ---------------------------------------------------------------------------
# Snapshots embedded in an order
# ---------------------------------------------------------------------------
class OrderLine(BaseModel):
    """One product/size/color selection, frozen at order time."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    size: str | None = None
    color: str | None = None
    quantity: int = Field(ge=1, le=5)
    image: str | None = None


class ShippingAddress(BaseModel):
    """Delivery address captured at checkout.

    A snapshot, not a reference to the customer's profile: later profile
    edits never change an order that has already been placed.
    """

    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    company_name: str | None = None
    country: str = "Nepal"
    street_address: str
    city: str
    province: str = "Bagmati Province"
    zip_code: str
    phone: str
    email: str
    notes: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ---------------------------------------------------------------------------
# Requests / responses
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[OrderLine] = Field(min_length=1)
    shipping_address: ShippingAddress
    payment_reference: str = Field(min_length=1)
    payment_method: PaymentMethod
    subtotal: float = Field(ge=0)
    shipping_cost: float = Field(ge=0)
    total: float = Field(ge=0)


class StockShortage(BaseModel):
    """A product the Order Service cannot supply in the requested quantity."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    requested: int
    available: int

    @property
    def message(self) -> str:
        return f"Insufficient stock for {self.name}. Available: {self.available}"


class PlacedOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str
    order_number: str
    created_at: datetime


class PaymentInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: PaymentMethod
    reference: str
    status: PaymentStatus
    paid_at: datetime | None = None


class OrderView(BaseModel):
    """Read-only copy of an order as returned by the Order Service."""

    model_config = ConfigDict(frozen=True)

    id: str
    order_number: str
    items: list[OrderLine]
    shipping_address: ShippingAddress
    payment_info: PaymentInfo
    subtotal: float
    shipping_cost: float
    total: float
    order_status: OrderStatus
    delivered_at: datetime | None = None
    created_at: datetime
