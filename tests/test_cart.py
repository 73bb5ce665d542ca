"""Tests for the cart store."""
from __future__ import annotations

from storefront.cart import Cart


def test_add_merges_quantity_and_keeps_options():
    cart = Cart()
    cart.add("runner", 1, color="Red", size="9")
    cart.add("runner", 2)
    entry = cart.get("runner")
    assert entry.quantity == 3
    assert entry.color == "Red"
    assert entry.size == "9"


def test_add_overwrites_options_when_given():
    cart = Cart()
    cart.add("runner", 1, color="Red", size="9")
    cart.add("runner", 1, color="Blue")
    entry = cart.get("runner")
    assert entry.color == "Blue"
    assert entry.size == "9"


def test_add_ignores_non_positive_quantity():
    cart = Cart()
    cart.add("runner", 0)
    cart.add("runner", -2)
    assert "runner" not in cart
    assert len(cart) == 0


def test_set_quantity_zero_or_negative_removes():
    cart = Cart()
    cart.add("runner", 2)
    cart.add("socks", 1)
    cart.set_quantity("runner", 0)
    cart.set_quantity("socks", -3)
    assert len(cart) == 0


def test_set_quantity_updates_existing_only():
    cart = Cart()
    cart.add("runner", 2)
    cart.set_quantity("runner", 5)
    cart.set_quantity("ghost", 4)
    assert cart.get("runner").quantity == 5
    assert "ghost" not in cart


def test_remove_clear_and_total():
    cart = Cart()
    cart.add("runner", 2)
    cart.add("socks", 3)
    assert cart.total_quantity() == 5
    cart.remove("runner")
    assert cart.total_quantity() == 3
    cart.clear()
    assert cart.total_quantity() == 0


def test_get_returns_a_copy():
    cart = Cart()
    cart.add("runner", 2)
    cart.get("runner").quantity = 99
    assert cart.get("runner").quantity == 2


def test_snapshot_roundtrip_drops_invalid_rows():
    stored = {
        "runner": {"productId": "runner", "quantity": 2, "color": "Red"},
        "zero": {"productId": "zero", "quantity": 0},
        "text": {"productId": "text", "quantity": "3"},
        "junk": "not a row",
    }
    cart = Cart.from_dict(stored)
    assert list(cart) == ["runner"]
    assert cart.to_dict() == {"runner": {"productId": "runner", "quantity": 2, "color": "Red"}}


def test_on_change_receives_snapshots():
    seen = []
    cart = Cart(on_change=seen.append)
    cart.add("runner", 1)
    cart.set_quantity("runner", 4)
    cart.remove("runner")
    assert [s.get("runner", {}).get("quantity") for s in seen] == [1, 4, None]


def test_no_op_mutations_do_not_fire_hook():
    seen = []
    cart = Cart(on_change=seen.append)
    cart.add("runner", 0)
    cart.remove("ghost")
    cart.set_quantity("ghost", 0)
    assert seen == []


def test_failing_hook_does_not_undo_mutation(caplog):
    def boom(snapshot):
        raise RuntimeError("storage offline")

    cart = Cart(on_change=boom)
    cart.add("runner", 2)
    assert cart.get("runner").quantity == 2
    assert "cart persistence hook failed" in caplog.text
