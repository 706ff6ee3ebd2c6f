"""Tests for the SQLite storage helpers."""

from __future__ import annotations

from common.ids import new_order_id
from common.models import Order, OrderStatus
from common.storage import (
    create_product,
    delete_product,
    get_order,
    get_product,
    is_message_processed,
    list_orders,
    list_products,
    mark_message_processed,
    save_order,
    update_order_status,
    update_product_quantity,
)
from common.values import Quantity
from conftest import PRODUCT_ID, make_product


def _order(order_id: str | None = None) -> Order:
    return Order(
        order_id=order_id or new_order_id(),
        product_id=PRODUCT_ID,
        customer_name="Ann",
        quantity_ordered=1,
    )


def test_order_round_trip(db_path):
    order = _order()
    assert save_order(db_path, order)
    assert get_order(db_path, order.order_id) == order
    assert get_order(db_path, "missing") is None


def test_duplicate_order_id_is_not_overwritten(db_path):
    order = _order("o-1")
    save_order(db_path, order)
    other = order.model_copy(update={"customer_name": "Bob"})
    assert not save_order(db_path, other)
    assert get_order(db_path, "o-1").customer_name == "Ann"


def test_list_orders_newest_first_with_total(db_path):
    ids = [new_order_id() for _ in range(5)]
    for order_id in ids:
        save_order(db_path, _order(order_id))

    first_page, total = list_orders(db_path, offset=0, limit=2)
    assert total == 5
    assert [o.order_id for o in first_page] == sorted(ids, reverse=True)[:2]

    last_page, _ = list_orders(db_path, offset=4, limit=2)
    assert len(last_page) == 1


def test_update_order_status_is_conditional(db_path):
    order = _order()
    save_order(db_path, order)
    assert update_order_status(db_path, order.order_id, OrderStatus.PROCESSING, OrderStatus.CANCELLED)
    assert not update_order_status(db_path, order.order_id, OrderStatus.PROCESSING, OrderStatus.COMPLETED)
    assert get_order(db_path, order.order_id).status is OrderStatus.CANCELLED


def test_product_quantity_write_reports_missing_rows(db_path):
    create_product(db_path, make_product(quantity=10))
    assert update_product_quantity(db_path, PRODUCT_ID, 4)
    assert get_product(db_path, PRODUCT_ID).quantity == Quantity(4)

    assert delete_product(db_path, PRODUCT_ID)
    assert not update_product_quantity(db_path, PRODUCT_ID, 3)


def test_negative_price_and_quantity_are_stored_as_given(db_path):
    create_product(db_path, make_product(price="-1.25", quantity=-2))
    stored = get_product(db_path, PRODUCT_ID)
    assert stored.price.cents == -125
    assert stored.quantity == Quantity(-2)


def test_list_products_pages(db_path):
    for n in range(3):
        create_product(db_path, make_product(product_id=f"p-{n}", name=f"P{n}"))
    page, total = list_products(db_path, offset=1, limit=1)
    assert total == 3
    assert [p.id for p in page] == ["p-1"]


def test_processed_messages(db_path):
    assert not is_message_processed(db_path, "evt-1")
    assert mark_message_processed(db_path, "evt-1")
    assert is_message_processed(db_path, "evt-1")
    assert not mark_message_processed(db_path, "evt-1")
