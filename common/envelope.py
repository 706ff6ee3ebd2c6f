"""
JSON response envelope: every body is {"data": ..., "meta": {...}}.
"""

from __future__ import annotations

from typing import Any

from common.models import Order, Pagination, ProductSnapshot


def envelope(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"data": data, "meta": meta or {}}


def error_envelope(message: str) -> dict[str, Any]:
    """
    >>> error_envelope("Product not found")
    {'data': None, 'meta': {'error': 'Product not found'}}
    """
    return {"data": None, "meta": {"error": message}}


def list_envelope(items: list[Any], pagination: Pagination) -> dict[str, Any]:
    return {"data": items, "meta": pagination.model_dump()}


def product_view(product: ProductSnapshot) -> dict[str, Any]:
    return product.model_dump()


def placeholder_product_view(product_id: str) -> dict[str, Any]:
    """Shown in place of a product the catalog could not return."""
    return {"id": product_id, "name": "Unknown Product", "price": 0.0, "quantity": 0}


def order_view(order: Order, product: ProductSnapshot | None) -> dict[str, Any]:
    return {
        "orderId": order.order_id,
        "product": product_view(product) if product else placeholder_product_view(order.product_id),
        "customerName": order.customer_name,
        "quantityOrdered": order.quantity_ordered,
        "orderStatus": order.status.value,
    }
