"""Order fulfilment — command and handler for order status changes.

Issued by the operator dashboard and fulfilment integrations. The checkout
client never changes an order's status.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.orders import OrderStatus

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    order_status = String(required=True, choices=OrderStatus)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_status(command.order_status)
        repo.add(order)
        logger.info(
            "Order status updated",
            order_id=str(order.id),
            order_number=order.order_number,
            order_status=order.order_status,
        )
