"""Tests for the in-memory stock levels and the stock factory."""

import pytest
from ordering.stock import get_stock, set_stock
from ordering.stock.memory_adapter import InMemoryStock
from shared.orders import OrderLine


def _line(product_id="sofa-1", quantity=1, name="Three Seater Sofa"):
    return OrderLine(product_id=product_id, name=name, unit_price=30000.0, quantity=quantity)


class TestShortages:
    def test_enough_stock(self):
        stock = InMemoryStock({"sofa-1": 3})
        assert stock.shortages([_line(quantity=3)]) == []

    def test_short_product_reported(self):
        stock = InMemoryStock({"sofa-1": 1})

        [shortage] = stock.shortages([_line(quantity=2)])

        assert shortage.product_id == "sofa-1"
        assert shortage.requested == 2
        assert shortage.available == 1
        assert shortage.message == "Insufficient stock for Three Seater Sofa. Available: 1"

    def test_lines_of_the_same_product_add_up(self):
        stock = InMemoryStock({"sofa-1": 4})
        shortages = stock.shortages([_line(quantity=3), _line(quantity=2)])
        assert [shortage.requested for shortage in shortages] == [5]

    def test_untracked_products_never_run_short(self):
        assert InMemoryStock().shortages([_line(quantity=5)]) == []

    def test_negative_level_rejected(self):
        with pytest.raises(ValueError):
            InMemoryStock({"sofa-1": -1})


class TestReserve:
    def test_reserve_takes_stock(self):
        stock = InMemoryStock({"sofa-1": 3, "lamp-1": 2})

        assert stock.reserve([_line(quantity=2), _line("lamp-1", 1, "Floor Lamp")]) == []

        assert stock.level("sofa-1") == 1
        assert stock.level("lamp-1") == 1

    def test_shortage_takes_nothing(self):
        stock = InMemoryStock({"sofa-1": 3, "lamp-1": 0})

        shortages = stock.reserve([_line(quantity=2), _line("lamp-1", 1, "Floor Lamp")])

        assert [shortage.product_id for shortage in shortages] == ["lamp-1"]
        assert stock.level("sofa-1") == 3

    def test_release_gives_stock_back(self):
        stock = InMemoryStock({"sofa-1": 3})
        stock.reserve([_line(quantity=2)])
        stock.release([_line(quantity=2)])
        assert stock.level("sofa-1") == 3


class TestStockFactory:
    def test_default_is_in_memory(self):
        assert isinstance(get_stock(), InMemoryStock)

    def test_singleton(self):
        assert get_stock() is get_stock()

    def test_override(self):
        stock = InMemoryStock()
        set_stock(stock)
        assert get_stock() is stock

    def test_unknown_adapter(self, monkeypatch):
        monkeypatch.setenv("STOCK_ADAPTER", "warehouse")
        with pytest.raises(ValueError):
            get_stock()
