from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import pytest

from orderpad.cart import Cart
from orderpad.constant import MSG_EMPTY_CART, MSG_NO_BRANCH, MSG_NO_TABLE
from orderpad.errors import BackendError, OrderValidationError, SubmissionInProgressError
from orderpad.models import MenuItem, OrderStatus
from orderpad.orders import OrderSubmitter

ITEM_A = MenuItem(id="item-a", category_id="cat-1", name="Samosa", price=Decimal("5.00"))
ITEM_B = MenuItem(id="item-b", category_id="cat-1", name="Pakora", price=Decimal("3.50"))


def sample_cart() -> Cart:
    cart = Cart()
    cart.add(ITEM_A)
    cart.add(ITEM_A)
    cart.add(ITEM_B)
    cart.set_notes("item-b", "no chilli")
    return cart


async def test_submit_writes_header_and_lines(backend, cardiff):
    submitter = OrderSubmitter(backend)

    order = await submitter.submit(cardiff, " 12 ", sample_cart(), notes="  birthday  ")

    assert order.status is OrderStatus.NEW
    assert order.table_number == "12"
    assert order.total_amount == Decimal("13.50")

    stored = backend.orders[order.id]
    assert Decimal(str(stored["total_amount"])) == Decimal("13.50")
    assert stored["status"] == "New"
    assert stored["notes"] == "birthday"
    assert stored["branch_id"] == cardiff.id

    lines = [row for row in backend.order_items if row["order_id"] == order.id]
    assert len(lines) == 2
    by_item = {row["menu_item_id"]: row for row in lines}
    assert by_item["item-a"]["quantity"] == 2
    assert Decimal(str(by_item["item-a"]["unit_price"])) == Decimal("5.00")
    assert by_item["item-b"]["quantity"] == 1
    assert Decimal(str(by_item["item-b"]["unit_price"])) == Decimal("3.50")
    assert by_item["item-b"]["notes"] == "no chilli"


@pytest.mark.parametrize(
    ("table_number", "use_cart", "message"),
    [
        ("", True, MSG_NO_TABLE),
        ("   ", True, MSG_NO_TABLE),
        ("12", False, MSG_EMPTY_CART),
    ],
)
async def test_invalid_submission_performs_no_writes(backend, cardiff, table_number, use_cart, message):
    submitter = OrderSubmitter(backend)
    cart = sample_cart() if use_cart else Cart()

    with pytest.raises(OrderValidationError) as excinfo:
        await submitter.submit(cardiff, table_number, cart)

    assert excinfo.value.message == message
    assert backend.writes == []


async def test_missing_branch_is_rejected(backend):
    with pytest.raises(OrderValidationError) as excinfo:
        await OrderSubmitter(backend).submit(None, "4", sample_cart())

    assert excinfo.value.message == MSG_NO_BRANCH
    assert backend.writes == []


async def test_item_failure_deletes_order_header(backend, cardiff):
    backend.fail.add("insert_order_items")
    submitter = OrderSubmitter(backend)

    with pytest.raises(BackendError):
        await submitter.submit(cardiff, "7", sample_cart())

    assert backend.orders == {}
    assert backend.writes[-1][0] == "delete_order"
    assert not submitter.in_flight


async def test_failed_rollback_keeps_original_error(backend, cardiff, caplog):
    backend.fail.update({"insert_order_items", "delete_order"})

    with caplog.at_level(logging.ERROR, logger="orderpad.orders"):
        with pytest.raises(BackendError) as excinfo:
            await OrderSubmitter(backend).submit(cardiff, "7", sample_cart())

    assert excinfo.value.message == "insert_order_items failed"
    assert len(backend.orders) == 1
    assert any("rollback_failed" in record.getMessage() for record in caplog.records)


async def test_second_submit_while_in_flight_is_rejected(backend, cardiff):
    backend.insert_gate = asyncio.Event()
    submitter = OrderSubmitter(backend)
    cart = sample_cart()

    first = asyncio.ensure_future(submitter.submit(cardiff, "3", cart))
    await asyncio.sleep(0)
    assert submitter.in_flight

    with pytest.raises(SubmissionInProgressError):
        await submitter.submit(cardiff, "3", cart)

    backend.insert_gate.set()
    order = await first

    assert list(backend.orders) == [order.id]
    assert not submitter.in_flight


async def test_cart_is_left_for_caller_to_clear(backend, cardiff):
    cart = sample_cart()
    await OrderSubmitter(backend).submit(cardiff, "9", cart)

    assert cart.item_count == 3
