"""Order aggregate — the authoritative record of a placed order.

An Order is created exactly once per successful checkout attempt and embeds
immutable snapshots of the cart lines and the shipping address. The client
never mutates it; status changes are server-side, driven by fulfilment and
payment events.

Order status:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING or PROCESSING, terminal)

Payment status:
    PENDING → COMPLETED | FAILED
    COMPLETED → REFUNDED
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject
from shared.orders import OrderStatus, PaymentMethod, PaymentStatus

from ordering.domain import ordering
from ordering.order.events import OrderPlaced, OrderStatusChanged, PaymentStatusChanged

# Amounts are compared to the cent
_CENT = 0.005

_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, frozen at checkout time."""

    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    company_name = String(max_length=255)
    country = String(required=True, max_length=100)
    street_address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    province = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    phone = String(required=True, max_length=30)
    email = String(required=True, max_length=254)
    notes = Text()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    size = String(max_length=50)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1, max_value=5)
    image = String(max_length=1000)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    items = HasMany(OrderLine)
    shipping_address = ValueObject(ShippingAddress)
    payment_reference = String(required=True, max_length=255)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    paid_at = DateTime()
    subtotal = Float(required=True, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_be_subtotal_plus_shipping(self):
        if abs((self.subtotal or 0.0) + (self.shipping_cost or 0.0) - (self.total or 0.0)) > _CENT:
            raise ValidationError({"total": ["Total must equal subtotal plus shipping cost"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        order_number,
        items_data,
        shipping_address,
        payment_reference,
        payment_method,
        subtotal,
        shipping_cost,
        total,
    ):
        """Record a new order from a checkout snapshot.

        Card orders arrive after the gateway has captured the payment, so they
        start out paid and processing. Bank transfer and cash-on-delivery
        orders start pending on both axes.

        Args:
            items_data: List of dicts with product_id, name, unit_price, size,
                        color, quantity and optionally image.
            shipping_address: Dict matching the ShippingAddress fields.
        """
        if not items_data:
            raise ValidationError({"items": ["An order must contain at least one item"]})

        lines_total = sum(item["unit_price"] * item["quantity"] for item in items_data)
        if abs(lines_total - subtotal) > _CENT:
            raise ValidationError({"subtotal": ["Subtotal does not match the order lines"]})

        method = PaymentMethod(payment_method)
        paid = method is PaymentMethod.CARD
        now = datetime.now(UTC)

        order = cls(
            customer_id=customer_id,
            order_number=order_number,
            shipping_address=ShippingAddress(**shipping_address),
            payment_reference=payment_reference,
            payment_method=method.value,
            payment_status=(PaymentStatus.COMPLETED if paid else PaymentStatus.PENDING).value,
            paid_at=now if paid else None,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=total,
            order_status=(OrderStatus.PROCESSING if paid else OrderStatus.PENDING).value,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(OrderLine(**item))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                payment_reference=payment_reference,
                payment_method=order.payment_method,
                payment_status=order.payment_status,
                order_status=order.order_status,
                item_count=len(items_data),
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                total=total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Order status
    # -------------------------------------------------------------------
    def change_status(self, new_status):
        """Move the order along its fulfilment state machine."""
        target = OrderStatus(new_status)
        current = OrderStatus(self.order_status)
        if target not in _ORDER_TRANSITIONS[current]:
            raise ValidationError({"order_status": [f"Cannot transition from {current.value} to {target.value}"]})
        if target is OrderStatus.PROCESSING and PaymentStatus(self.payment_status) != PaymentStatus.COMPLETED:
            raise ValidationError({"order_status": ["Payment must be completed before processing"]})

        now = datetime.now(UTC)
        self.order_status = target.value
        if target is OrderStatus.DELIVERED:
            self.delivered_at = now
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment status
    # -------------------------------------------------------------------
    def change_payment_status(self, new_status):
        """Record a payment event (bank transfer received, refund, failure).

        A completed payment on a pending order releases it for processing.
        """
        target = PaymentStatus(new_status)
        current = PaymentStatus(self.payment_status)
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ValidationError({"payment_status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.payment_status = target.value
        if target is PaymentStatus.COMPLETED and not self.paid_at:
            self.paid_at = now
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_reference=self.payment_reference,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

        if target is PaymentStatus.COMPLETED and OrderStatus(self.order_status) == OrderStatus.PENDING:
            self.change_status(OrderStatus.PROCESSING)


@ordering.aggregate
class OrderSequence:
    """Monotonic counter behind human-facing order numbers."""

    name = String(identifier=True, max_length=50)
    last_value = Integer(default=0, min_value=0)

    def next_number(self):
        self.last_value = (self.last_value or 0) + 1
        return f"ORD-{self.last_value:06d}"
