"""Tests for the JSON file cart storage."""

from storefront.cart.storage import CART_SLOT, JsonFileCartStorage
from storefront.cart.store import CartStore
from storefront.settings import CheckoutSettings


class TestJsonFileCartStorage:
    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileCartStorage(tmp_path / "cart.json").load(CART_SLOT) is None

    def test_save_and_load(self, tmp_path):
        storage = JsonFileCartStorage(tmp_path / "cart.json")
        storage.save(CART_SLOT, [{"product_id": "sofa-1", "quantity": 1}])
        assert JsonFileCartStorage(tmp_path / "cart.json").load(CART_SLOT) == [{"product_id": "sofa-1", "quantity": 1}]

    def test_slots_are_independent(self, tmp_path):
        storage = JsonFileCartStorage(tmp_path / "cart.json")
        storage.save("cart", [{"a": 1}])
        storage.save("wishlist", [{"b": 2}])
        assert storage.load("cart") == [{"a": 1}]
        assert storage.load("wishlist") == [{"b": 2}]

    def test_corrupt_file_is_treated_as_empty(self, tmp_path):
        path = tmp_path / "cart.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileCartStorage(path).load(CART_SLOT) is None

    def test_non_list_slot_ignored(self, tmp_path):
        path = tmp_path / "cart.json"
        path.write_text('{"cart": "oops"}', encoding="utf-8")
        assert JsonFileCartStorage(path).load(CART_SLOT) is None


class TestCartStoreFromSettings:
    def test_file_backed_when_path_configured(self, tmp_path):
        settings = CheckoutSettings(cart_storage_path=str(tmp_path / "cart.json"))
        cart = CartStore.from_settings(settings)
        cart.add("lamp-1", "Floor Lamp", 2500.0, quantity=2)

        assert CartStore.from_settings(settings).item_count == 2

    def test_in_memory_by_default(self):
        cart = CartStore.from_settings(CheckoutSettings())
        cart.add("lamp-1", "Floor Lamp", 2500.0)
        assert CartStore.from_settings(CheckoutSettings()).is_empty
