"""
SQLite persistence for both services.

Each service points at its own database file: the order service uses the
`orders` table, the catalog uses `products` and `processed_messages`.
init_db() creates all of them so either service can start from an empty
file. Writes that other workers may race on are single-row conditional
updates that report success as a boolean.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from common.ids import now_iso
from common.models import Order, OrderStatus, ProductSnapshot
from common.values import Money, Quantity


def init_db(db_path: str) -> None:
    """
    Create database and tables if they do not exist.
    Enables WAL mode for better concurrency.

    Tables:
    - orders(order_id, product_id, customer_name, quantity_ordered, status, created_at)
    - products(product_id, name, price_cents, quantity, created_at)
    - processed_messages(message_id, seen_at)
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with _connection(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("""
            CREATE TABLE IF NOT EXISTS orders (
                order_id TEXT PRIMARY KEY,
                product_id TEXT NOT NULL,
                customer_name TEXT NOT NULL,
                quantity_ordered INTEGER NOT NULL,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS products (
                product_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                price_cents INTEGER NOT NULL,
                quantity INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS processed_messages (
                message_id TEXT PRIMARY KEY,
                seen_at TEXT NOT NULL
            )
        """)


@contextmanager
def _connection(db_path: str) -> Iterator[sqlite3.Connection]:
    """Context manager for a SQLite connection (auto-commit on exit, rollback on error)."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# -----------------------------------------------------------------------------
# Orders
# -----------------------------------------------------------------------------


def _order_from_row(row: sqlite3.Row) -> Order:
    return Order(
        order_id=row["order_id"],
        product_id=row["product_id"],
        customer_name=row["customer_name"],
        quantity_ordered=row["quantity_ordered"],
        status=OrderStatus(row["status"]),
        created_at=row["created_at"],
    )


def save_order(db_path: str, order: Order) -> bool:
    """
    Insert a new order. Returns False if the order_id already exists.

    >>> import tempfile
    >>> db = tempfile.mktemp(suffix=".db")
    >>> init_db(db)
    >>> o = Order(order_id="o1", product_id="p1", customer_name="Ann", quantity_ordered=2)
    >>> save_order(db, o), save_order(db, o)
    (True, False)
    """
    with _connection(db_path) as conn:
        try:
            conn.execute(
                """
                INSERT INTO orders
                    (order_id, product_id, customer_name, quantity_ordered, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    order.order_id,
                    order.product_id,
                    order.customer_name,
                    order.quantity_ordered,
                    order.status.value,
                    order.created_at,
                ),
            )
            return True
        except sqlite3.IntegrityError:
            return False


def get_order(db_path: str, order_id: str) -> Order | None:
    """Return the order with the given id, or None if not found."""
    with _connection(db_path) as conn:
        row = conn.execute("SELECT * FROM orders WHERE order_id = ?", (order_id,)).fetchone()
    if row is None:
        return None
    return _order_from_row(row)


def list_orders(db_path: str, offset: int, limit: int) -> tuple[list[Order], int]:
    """Page of orders, newest first, plus the total count."""
    with _connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM orders ORDER BY order_id DESC LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        total = conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]
    return [_order_from_row(r) for r in rows], total


def update_order_status(
    db_path: str,
    order_id: str,
    expected: OrderStatus,
    status: OrderStatus,
) -> bool:
    """Move an order from `expected` to `status`. False if it was not in `expected`."""
    with _connection(db_path) as conn:
        cur = conn.execute(
            "UPDATE orders SET status = ? WHERE order_id = ? AND status = ?",
            (status.value, order_id, expected.value),
        )
        return cur.rowcount > 0


# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------


def _product_from_row(row: sqlite3.Row) -> ProductSnapshot:
    return ProductSnapshot(
        id=row["product_id"],
        name=row["name"],
        price=Money(row["price_cents"]),
        quantity=Quantity(row["quantity"]),
    )


def create_product(db_path: str, product: ProductSnapshot) -> None:
    with _connection(db_path) as conn:
        conn.execute(
            """
            INSERT INTO products (product_id, name, price_cents, quantity, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (product.id, product.name, product.price.cents, product.quantity.value, now_iso()),
        )


def get_product(db_path: str, product_id: str) -> ProductSnapshot | None:
    """
    Return a fresh snapshot of the product, or None if not found.

    >>> import tempfile
    >>> db = tempfile.mktemp(suffix=".db")
    >>> init_db(db)
    >>> create_product(db, ProductSnapshot(id="p1", name="Mug", price=4.5, quantity=3))
    >>> get_product(db, "p1").price.cents
    450
    >>> get_product(db, "missing") is None
    True
    """
    with _connection(db_path) as conn:
        row = conn.execute("SELECT * FROM products WHERE product_id = ?", (product_id,)).fetchone()
    if row is None:
        return None
    return _product_from_row(row)


def list_products(db_path: str, offset: int, limit: int) -> tuple[list[ProductSnapshot], int]:
    with _connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM products ORDER BY product_id LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        total = conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]
    return [_product_from_row(r) for r in rows], total


def update_product_quantity(db_path: str, product_id: str, quantity: int) -> bool:
    """
    Write an absolute quantity. False when no row matched (product deleted
    meanwhile), which is an expected outcome rather than an error.
    """
    with _connection(db_path) as conn:
        cur = conn.execute(
            "UPDATE products SET quantity = ? WHERE product_id = ?",
            (quantity, product_id),
        )
        return cur.rowcount > 0


def delete_product(db_path: str, product_id: str) -> bool:
    with _connection(db_path) as conn:
        cur = conn.execute("DELETE FROM products WHERE product_id = ?", (product_id,))
        return cur.rowcount > 0


# -----------------------------------------------------------------------------
# Delivery deduplication
# -----------------------------------------------------------------------------


def is_message_processed(db_path: str, message_id: str) -> bool:
    with _connection(db_path) as conn:
        row = conn.execute(
            "SELECT 1 FROM processed_messages WHERE message_id = ?", (message_id,)
        ).fetchone()
    return row is not None


def mark_message_processed(db_path: str, message_id: str) -> bool:
    """
    Record that a message was processed (idempotency). Returns True if inserted,
    False if message_id was already seen.

    >>> import tempfile
    >>> db = tempfile.mktemp(suffix=".db")
    >>> init_db(db)
    >>> mark_message_processed(db, "msg-1")
    True
    >>> mark_message_processed(db, "msg-1")
    False
    """
    with _connection(db_path) as conn:
        try:
            conn.execute(
                "INSERT INTO processed_messages (message_id, seen_at) VALUES (?, ?)",
                (message_id, now_iso()),
            )
            return True
        except sqlite3.IntegrityError:
            return False
