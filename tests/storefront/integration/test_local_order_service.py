import asyncio

import pytest
from ordering.stock import set_stock
from ordering.stock.memory_adapter import InMemoryStock
from shared.orders import OrderStatus, PaymentStatus, PlaceOrderRequest
from storefront.orders import build_order_service
from storefront.orders.http_adapter import HttpOrderService
from storefront.orders.local_adapter import LocalOrderService
from storefront.orders.port import OrderServiceError
from storefront.settings import CheckoutSettings

TOKEN = "dev-token-cust-local-001"


def _order_request(reference="COD-1700000000000", method="cod", **overrides):
    data = {
        "items": [{"product_id": "chair-3", "name": "Dining Chair", "unit_price": 7500.0, "quantity": 2}],
        "shipping_address": {
            "first_name": "Bikash",
            "last_name": "Thapa",
            "street_address": "Jhamsikhel 4",
            "city": "Lalitpur",
            "zip_code": "44700",
            "phone": "9811111111",
            "email": "bikash@example.com",
        },
        "payment_reference": reference,
        "payment_method": method,
        "subtotal": 15000.0,
        "shipping_cost": 500.0,
        "total": 15500.0,
    }
    data.update(overrides)
    return PlaceOrderRequest.model_validate(data)


class TestLocalOrderService:
    def test_cash_on_delivery_order_starts_pending(self, ordering_domain):
        service = LocalOrderService(ordering_domain)

        async def scenario():
            placed = await service.create_order(TOKEN, _order_request())
            return placed, await service.list_orders(TOKEN)

        placed, orders = asyncio.run(scenario())

        assert orders[0].id == placed.order_id
        assert orders[0].order_status is OrderStatus.PENDING
        assert orders[0].payment_info.status is PaymentStatus.PENDING
        assert orders[0].payment_info.paid_at is None

    def test_order_numbers_increase(self, ordering_domain):
        service = LocalOrderService(ordering_domain)

        async def scenario():
            first = await service.create_order(TOKEN, _order_request("COD-1"))
            second = await service.create_order(TOKEN, _order_request("COD-2"))
            return first, second

        first, second = asyncio.run(scenario())

        assert first.order_number < second.order_number

    def test_invalid_token(self, ordering_domain):
        service = LocalOrderService(ordering_domain)

        with pytest.raises(OrderServiceError) as exc_info:
            asyncio.run(service.create_order("Bearer nope", _order_request()))

        assert exc_info.value.status_code == 401

    def test_total_mismatch_is_rejected(self, ordering_domain):
        service = LocalOrderService(ordering_domain)

        with pytest.raises(OrderServiceError) as exc_info:
            asyncio.run(service.create_order(TOKEN, _order_request(total=99.0)))

        assert exc_info.value.status_code == 400
        assert exc_info.value.retryable is False

    def test_stock_check(self, ordering_domain):
        set_stock(InMemoryStock({"chair-3": 1}))
        service = LocalOrderService(ordering_domain)

        [shortage] = asyncio.run(service.check_stock(TOKEN, _order_request().items))

        assert shortage.message == "Insufficient stock for Dining Chair. Available: 1"

    def test_stock_check_requires_a_customer(self, ordering_domain):
        service = LocalOrderService(ordering_domain)

        with pytest.raises(OrderServiceError) as exc_info:
            asyncio.run(service.check_stock("nope", _order_request().items))

        assert exc_info.value.status_code == 401

    def test_insufficient_stock_is_rejected(self, ordering_domain):
        set_stock(InMemoryStock({"chair-3": 1}))
        service = LocalOrderService(ordering_domain)

        with pytest.raises(OrderServiceError) as exc_info:
            asyncio.run(service.create_order(TOKEN, _order_request()))

        assert exc_info.value.status_code == 400
        assert "Insufficient stock for Dining Chair" in exc_info.value.reason


class TestBuildOrderService:
    def test_local_by_default(self):
        assert isinstance(build_order_service(CheckoutSettings()), LocalOrderService)

    def test_http_when_url_configured(self):
        service = build_order_service(CheckoutSettings(order_service_url="http://orders.internal/"))
        assert isinstance(service, HttpOrderService)
        assert service.base_url == "http://orders.internal"
