"""Domain events for the Order aggregate.

Events are immutable facts emitted when an order is placed and whenever its
order or payment status moves. Operators and downstream consumers
(fulfilment, notifications, reconciliation reports) react to these.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was recorded for a completed checkout attempt."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    payment_reference = String(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    order_status = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    shipping_cost = Float(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The fulfilment status of an order moved along its state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusChanged:
    """The payment status of an order moved (captured, failed, refunded)."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_reference = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)
