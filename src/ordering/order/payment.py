"""Order payment — command and handler for payment status changes.

Bank transfers and cash-on-delivery orders are confirmed here once the money
arrives; refunds and failures are recorded the same way.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from shared.orders import PaymentStatus

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, choices=PaymentStatus)


@ordering.command_handler(part_of=Order)
class UpdatePaymentStatusHandler:
    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_payment_status(command.payment_status)
        repo.add(order)
        logger.info(
            "Payment status updated",
            order_id=str(order.id),
            order_number=order.order_number,
            payment_status=order.payment_status,
            order_status=order.order_status,
        )
