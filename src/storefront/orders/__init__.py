"""Order Service client factory.

``build_order_service`` returns the HTTP adapter when an Order Service URL is
configured, and the in-process adapter otherwise.
"""

from storefront.orders.port import OrderService, OrderServiceError

__all__ = ["OrderService", "OrderServiceError", "build_order_service"]


def build_order_service(settings) -> OrderService:
    if settings.order_service_url:
        from storefront.orders.http_adapter import HttpOrderService

        return HttpOrderService(settings.order_service_url)

    from storefront.orders.local_adapter import LocalOrderService

    return LocalOrderService()
