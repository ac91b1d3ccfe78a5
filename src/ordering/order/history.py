"""Order read side — customer order history and the operator listing."""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from shared.orders import OrderLine as OrderLineData
from shared.orders import OrderStatus, OrderView, PaymentInfo, PaymentMethod, PaymentStatus
from shared.orders import ShippingAddress as ShippingAddressData

from ordering.order.order import Order

ALL_STATUSES = "all"


def _newest_first(orders):
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


def orders_for_customer(customer_id):
    """All orders placed by a customer, newest first."""
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(customer_id=str(customer_id)).all().items)


def order_for_customer(order_id, customer_id):
    """The order if it exists and belongs to the customer, else None."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        return None
    if str(order.customer_id) != str(customer_id):
        return None
    return order


def orders_by_status(order_status=ALL_STATUSES):
    """Operator listing: orders filtered by status plus per-status counts.

    Counts are always computed over every order so the dashboard tabs stay
    stable while a filter is applied.
    """
    repo = current_domain.repository_for(Order)
    everything = repo._dao.query.all().items

    stats = {"total": len(everything)}
    for status in OrderStatus:
        stats[status.value] = sum(1 for order in everything if order.order_status == status.value)
    stats["pending_payments"] = sum(
        1 for order in everything if order.payment_status == PaymentStatus.PENDING.value
    )

    if order_status == ALL_STATUSES:
        selected = everything
    else:
        try:
            wanted = OrderStatus(order_status).value
        except ValueError as exc:
            raise ValidationError({"order_status": [f"Unknown order status: {order_status}"]}) from exc
        selected = [order for order in everything if order.order_status == wanted]

    return _newest_first(selected), stats


def to_view(order):
    """Render an Order aggregate as the read-only wire copy."""
    address = order.shipping_address
    return OrderView(
        id=str(order.id),
        order_number=order.order_number,
        items=[
            OrderLineData(
                product_id=str(line.product_id),
                name=line.name,
                unit_price=line.unit_price,
                size=line.size,
                color=line.color,
                quantity=line.quantity,
                image=line.image,
            )
            for line in order.items
        ],
        shipping_address=ShippingAddressData(
            first_name=address.first_name,
            last_name=address.last_name,
            company_name=address.company_name,
            country=address.country,
            street_address=address.street_address,
            city=address.city,
            province=address.province,
            zip_code=address.zip_code,
            phone=address.phone,
            email=address.email,
            notes=address.notes,
        ),
        payment_info=PaymentInfo(
            method=PaymentMethod(order.payment_method),
            reference=order.payment_reference,
            status=PaymentStatus(order.payment_status),
            paid_at=order.paid_at,
        ),
        subtotal=order.subtotal,
        shipping_cost=order.shipping_cost or 0.0,
        total=order.total,
        order_status=OrderStatus(order.order_status),
        delivered_at=order.delivered_at,
        created_at=order.created_at,
    )
