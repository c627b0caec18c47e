from __future__ import annotations

import random
from decimal import Decimal

from orderpad.cart import Cart
from orderpad.models import MenuItem

SAMOSA = MenuItem(id="item-a", category_id="cat-1", name="Samosa", price=Decimal("5.00"))
PAKORA = MenuItem(id="item-b", category_id="cat-1", name="Pakora", price=Decimal("3.50"))
KARAHI = MenuItem(id="item-c", category_id="cat-2", name="Karahi", price=Decimal("12.95"))


def test_add_appends_then_increments():
    cart = Cart()
    cart.add(SAMOSA)
    cart.add(PAKORA)
    cart.add(SAMOSA)

    assert [entry.id for entry in cart.items] == ["item-a", "item-b"]
    assert cart.quantity_of("item-a") == 2
    assert cart.quantity_of("item-b") == 1
    assert cart.item_count == 3


def test_total_is_price_times_quantity():
    cart = Cart()
    cart.add(SAMOSA)
    cart.add(SAMOSA)
    cart.add(PAKORA)

    assert cart.total == Decimal("13.50")


def test_set_quantity_zero_or_below_removes():
    cart = Cart()
    cart.add(SAMOSA)
    cart.add(PAKORA)

    cart.set_quantity("item-a", 0)
    cart.set_quantity("item-b", -3)

    assert cart.is_empty
    assert cart.total == Decimal("0.00")


def test_decrement_last_unit_removes_entry():
    cart = Cart()
    cart.add(KARAHI)
    cart.decrement("item-c")

    assert cart.quantity_of("item-c") == 0
    assert len(cart) == 0


def test_set_notes_keeps_quantity():
    cart = Cart()
    cart.add(KARAHI)
    cart.add(KARAHI)
    cart.set_notes("item-c", "extra spicy")

    (entry,) = cart.items
    assert entry.notes == "extra spicy"
    assert entry.quantity == 2


def test_unknown_ids_are_ignored():
    cart = Cart()
    cart.add(SAMOSA)

    cart.set_quantity("missing", 4)
    cart.set_notes("missing", "x")
    cart.increment("missing")
    cart.remove("missing")

    assert [entry.id for entry in cart.items] == ["item-a"]
    assert cart.quantity_of("missing") == 0


def test_clear_empties_cart():
    cart = Cart()
    cart.add(SAMOSA)
    cart.clear()

    assert cart.is_empty
    assert cart.item_count == 0


def test_random_operation_sequences_keep_invariants():
    rng = random.Random(2024)
    menu = [SAMOSA, PAKORA, KARAHI]

    for _ in range(200):
        cart = Cart()
        for _ in range(rng.randint(1, 30)):
            item = rng.choice(menu)
            op = rng.choice(["add", "set_quantity", "set_notes", "increment", "decrement"])
            if op == "add":
                cart.add(item)
            elif op == "set_quantity":
                cart.set_quantity(item.id, rng.randint(-2, 5))
            elif op == "set_notes":
                cart.set_notes(item.id, rng.choice(["", "no onions", "mild"]))
            elif op == "increment":
                cart.increment(item.id)
            else:
                cart.decrement(item.id)

        entries = cart.items
        assert all(entry.quantity >= 1 for entry in entries)
        assert len({entry.id for entry in entries}) == len(entries)
        expected = sum((entry.menu_item.price * entry.quantity for entry in entries), Decimal("0"))
        assert cart.total == expected
