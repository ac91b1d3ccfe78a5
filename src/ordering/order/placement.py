"""Order placement — command and handler.

Placement is idempotent on the payment reference: for card payments the
reference is the gateway authorization id, so a replayed request for the same
charge returns the order that already exists instead of creating a second one.
Order numbers are assigned here, never by the client. Stock for every line
is taken when the order is recorded; an order that cannot be filled is
rejected with "Insufficient stock for ...".
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain
from shared.orders import PlacedOrder

from ordering.domain import ordering
from ordering.order.order import Order, OrderSequence
from ordering.stock import get_stock

logger = structlog.get_logger(__name__)

ORDER_SEQUENCE = "orders"


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of order line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_reference = String(required=True, max_length=255)
    payment_method = String(required=True, max_length=50)
    subtotal = Float(required=True)
    shipping_cost = Float(default=0.0)
    total = Float(required=True)


def _next_order_number():
    repo = current_domain.repository_for(OrderSequence)
    try:
        sequence = repo.get(ORDER_SEQUENCE)
    except ObjectNotFoundError:
        sequence = OrderSequence(name=ORDER_SEQUENCE, last_value=0)
    order_number = sequence.next_number()
    repo.add(sequence)
    return order_number


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        existing = repo._dao.query.filter(payment_reference=command.payment_reference).all().items
        if existing:
            order = existing[0]
            if str(order.customer_id) != str(command.customer_id):
                raise ValidationError({"payment_reference": ["Payment reference belongs to another order"]})
            logger.info(
                "Order placement replayed",
                order_id=str(order.id),
                order_number=order.order_number,
                payment_reference=command.payment_reference,
            )
            return str(order.id)

        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        order = Order.place(
            customer_id=command.customer_id,
            order_number=_next_order_number(),
            items_data=items_data,
            shipping_address=shipping_address,
            payment_reference=command.payment_reference,
            payment_method=command.payment_method,
            subtotal=command.subtotal,
            shipping_cost=command.shipping_cost or 0.0,
            total=command.total,
        )
        stock = get_stock()
        shortages = stock.reserve(order.items)
        if shortages:
            logger.info(
                "Order rejected for stock",
                payment_reference=command.payment_reference,
                products=[shortage.product_id for shortage in shortages],
            )
            raise ValidationError({"items": [shortage.message for shortage in shortages]})
        try:
            repo.add(order)
        except Exception:
            stock.release(order.items)
            raise

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            total=order.total,
        )
        return str(order.id)


def submit_order(customer_id, request):
    """Place an order for an authenticated customer from a wire request.

    Shared by the HTTP API and the in-process storefront adapter. Must run
    inside the ordering domain context.

    Returns:
        PlacedOrder with the server-assigned id, number and creation time.
    """
    command = PlaceOrder(
        customer_id=str(customer_id),
        items=json.dumps([line.model_dump() for line in request.items]),
        shipping_address=json.dumps(request.shipping_address.model_dump()),
        payment_reference=request.payment_reference,
        payment_method=request.payment_method.value,
        subtotal=request.subtotal,
        shipping_cost=request.shipping_cost,
        total=request.total,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return PlacedOrder(order_id=str(order.id), order_number=order.order_number, created_at=order.created_at)
