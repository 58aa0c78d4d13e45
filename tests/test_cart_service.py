import json
from urllib.parse import unquote

import pytest

from app.core.exceptions import ValidationException
from app.modules.store.cart.services.cart_service import CartService
from app.modules.store.cart.stores import MemoryKeyValueStore

RING = {"id": "ring-1", "name": "Gold Ring", "price": 1500, "image": "https://cdn/ring.jpg",
        "images": ["https://cdn/ring-front.jpg", "https://cdn/ring.jpg"]}
CHAIN = {"id": "chain-1", "name": "Silver Chain", "price": 499.5, "image": "https://cdn/chain.jpg", "images": []}


class BrokenStore(MemoryKeyValueStore):
    def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def cart(store):
    return CartService(store, storage_key="cart")


def _persisted(store):
    return json.loads(store.get_item("cart"))


def test_add_snapshots_product_and_persists(cart, store):
    line = cart.add(RING)
    assert line.product_id == "ring-1"
    assert line.image == "https://cdn/ring-front.jpg"
    assert _persisted(store) == [{
        "productId": "ring-1", "name": "Gold Ring", "price": 1500.0, "quantity": 1,
        "image": "https://cdn/ring-front.jpg",
    }]


def test_image_snapshot_falls_back_to_primary_image(cart):
    assert cart.add(CHAIN).image == "https://cdn/chain.jpg"


def test_add_existing_product_increments_quantity(cart):
    cart.add(RING)
    cart.add(RING, quantity=2)
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 3


def test_add_rejects_quantity_below_one(cart, store):
    with pytest.raises(ValidationException):
        cart.add(RING, quantity=0)
    assert store.get_item("cart") is None


def test_snapshot_is_not_affected_by_later_product_changes(cart):
    product = dict(RING)
    cart.add(product)
    product["price"] = 9999
    cart.add(product)
    assert cart.lines[0].price == 1500


def test_adjust_quantity_and_remove_at_zero(cart, store):
    cart.add(RING, quantity=2)
    assert cart.adjust_quantity("ring-1", -1).quantity == 1
    assert cart.adjust_quantity("ring-1", -1) is None
    assert cart.lines == []
    assert _persisted(store) == []


def test_adjust_unknown_product_is_noop(cart):
    cart.add(RING)
    assert cart.adjust_quantity("unknown", 5) is None
    assert cart.item_count == 1


def test_remove_deletes_whole_line(cart):
    cart.add(RING, quantity=4)
    cart.add(CHAIN)
    cart.remove("ring-1")
    assert [line.product_id for line in cart.lines] == ["chain-1"]


def test_total_and_item_count(cart):
    cart.add(RING, quantity=2)
    cart.add(CHAIN, quantity=2)
    assert cart.total() == pytest.approx(3999.0)
    assert cart.item_count == 4


def test_lines_are_copies(cart):
    cart.add(RING)
    cart.lines[0].quantity = 50
    assert cart.lines[0].quantity == 1


def test_hydrate_restores_persisted_cart(store):
    first = CartService(store)
    first.add(RING, quantity=2)
    first.add(CHAIN)

    second = CartService(store)
    lines = second.hydrate()
    assert [(l.product_id, l.quantity) for l in lines] == [("ring-1", 2), ("chain-1", 1)]
    assert second.total() == first.total()


@pytest.mark.parametrize("raw", ["{not json", '{"productId": "x"}', "42", "null"])
def test_hydrate_with_corrupt_data_yields_empty_cart(store, raw):
    store.set_item("cart", raw)
    cart = CartService(store)
    assert cart.hydrate() == []
    assert cart.total() == 0


def test_hydrate_skips_bad_entries_and_merges_duplicates(store):
    store.set_item("cart", json.dumps([
        {"productId": "a", "name": "A", "price": 10, "quantity": 1, "image": ""},
        {"productId": "a", "name": "A", "price": 10, "quantity": 2, "image": ""},
        {"productId": "b", "name": "B", "price": -5, "quantity": 1},
        {"productId": "c", "name": "C", "price": 5, "quantity": 0},
        "garbage",
    ]))
    cart = CartService(store)
    lines = cart.hydrate()
    assert [(l.product_id, l.quantity) for l in lines] == [("a", 3)]


def test_write_failure_keeps_in_memory_state(caplog):
    cart = CartService(BrokenStore())
    cart.add(RING)
    assert cart.item_count == 1
    assert "保存购物车失败" in caplog.text


def test_clear(cart, store):
    cart.add(RING)
    cart.clear()
    assert cart.lines == []
    assert _persisted(store) == []


def test_checkout_link_lists_every_line(cart):
    cart.add(RING, quantity=2)
    cart.add(CHAIN)
    link = cart.checkout_link(phone_number="+91 98765 43210", base_url="https://shop.example.com")
    assert link.startswith("https://wa.me/919876543210?text=")
    message = unquote(link.split("?text=", 1)[1])
    assert "• Gold Ring - ₹1500\n  https://shop.example.com/product/ring-1" in message
    assert "• Silver Chain - ₹499.5" in message


def test_buy_now_link_does_not_touch_cart(cart, store):
    link = cart.buy_now_link(RING, quantity=3, phone_number="1", base_url="")
    assert "Gold%20Ring" in link
    assert cart.lines == []
    assert store.get_item("cart") is None
