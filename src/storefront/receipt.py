"""Receipt and status display mapping for the order-confirmation and history views."""

from dataclasses import dataclass
from datetime import datetime

from shared.orders import OrderLine, OrderStatus, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class PaymentBadge:
    label: str
    tone: str
    message: str


@dataclass(frozen=True)
class Receipt:
    """What the customer sees after a successful checkout.

    The order number is the one assigned by the Order Service.
    """

    order_number: str
    order_id: str
    amount: float
    items: tuple[OrderLine, ...]
    payment_method: PaymentMethod
    payment_reference: str
    created_at: datetime

    @property
    def badge(self) -> PaymentBadge:
        return payment_badge(self.payment_method)


_BADGES = {
    PaymentMethod.CARD: PaymentBadge(
        label="Paid",
        tone="green",
        message="Your payment has been successfully processed.",
    ),
    PaymentMethod.BANK_TRANSFER: PaymentBadge(
        label="Pending",
        tone="amber",
        message="Awaiting bank transfer. We will process your order once payment is confirmed.",
    ),
    PaymentMethod.CASH_ON_DELIVERY: PaymentBadge(
        label="Pending",
        tone="amber",
        message="Pay with cash when your order is delivered.",
    ),
}

ORDER_STATUS_TONES = {
    OrderStatus.PENDING: "amber",
    OrderStatus.PROCESSING: "blue",
    OrderStatus.SHIPPED: "purple",
    OrderStatus.DELIVERED: "green",
    OrderStatus.CANCELLED: "red",
}

PAYMENT_STATUS_TONES = {
    PaymentStatus.PENDING: "amber",
    PaymentStatus.COMPLETED: "green",
    PaymentStatus.FAILED: "red",
    PaymentStatus.REFUNDED: "gray",
}


def payment_badge(method: PaymentMethod) -> PaymentBadge:
    return _BADGES[PaymentMethod(method)]
