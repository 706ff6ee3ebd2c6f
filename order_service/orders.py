"""
Order admission and order reads.

Admission is optimistic: availability is checked against a snapshot fetched
from the catalog, the order is persisted, and a StockDecrementedEvent is
published without waiting for the catalog to apply it. Two orders can pass
the check against the same stale stock; the catalog's reconciler clamps the
result instead of this service taking a cross-service lock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from broker.channel import EventChannel
from common.errors import (
    InsufficientStockError,
    InvalidTransition,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from common.ids import new_order_id
from common.models import Order, OrderStatus, Pagination, ProductSnapshot, StockDecrementedEvent
from common.storage import get_order, list_orders, save_order, update_order_status
from order_service.product_client import StockQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderWithProduct:
    order: Order
    product: ProductSnapshot | None


@dataclass(frozen=True)
class PaginatedOrders:
    orders: list[OrderWithProduct]
    pagination: Pagination


class OrderService:
    def __init__(self, db_path: str, products: StockQuery, channel: EventChannel) -> None:
        self._db_path = db_path
        self._products = products
        self._channel = channel

    async def create_order(
        self,
        order_id: str | None,
        product_id: str,
        customer_name: str,
        quantity_ordered: int,
    ) -> Order:
        """
        Admit an order against the product's current stock.

        Raises ProductNotFound when the catalog has no answer for the product
        and InsufficientStockError when the snapshot cannot cover the request.
        The decrement event is fire-and-forget: a publish failure is logged
        and the persisted order stands.
        """
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        if quantity_ordered <= 0:
            raise ValidationError("Quantity ordered must be greater than 0")

        order_id = order_id or new_order_id()
        if get_order(self._db_path, order_id) is not None:
            raise ValidationError("Order already exists")

        context = {
            "order_id": order_id,
            "product_id": product_id,
            "customer_name": customer_name,
            "requested_quantity": quantity_ordered,
        }

        product = await self._products.fetch(product_id)
        if product is None:
            logger.warning("Attempted to create order for non-existent product", extra={"context": context})
            raise ProductNotFound(product_id)

        if not product.has_available_quantity(quantity_ordered):
            logger.warning(
                "Attempted to create order with insufficient stock",
                extra={"context": {**context, "available_quantity": product.quantity.value}},
            )
            raise InsufficientStockError(product_id, quantity_ordered, product.quantity.value)

        order = Order(
            order_id=order_id,
            product_id=product_id,
            customer_name=customer_name,
            quantity_ordered=quantity_ordered,
        )
        if not save_order(self._db_path, order):
            raise ValidationError("Order already exists")

        await self._publish_decrement(product, order)
        logger.info("Order created successfully", extra={"context": context})
        return order

    async def _publish_decrement(self, product: ProductSnapshot, order: Order) -> None:
        # The pre-decrement snapshot goes out as-is; the consumer re-reads current stock
        event = StockDecrementedEvent.for_order(product, order.quantity_ordered, order.order_id)
        try:
            await self._channel.publish(event)
        except Exception:
            logger.exception(
                "Failed to publish stock decrement; order %s kept without decrement",
                order.order_id,
            )

    async def get_order(self, order_id: str) -> OrderWithProduct | None:
        """Order joined with a fresh (uncached) product snapshot."""
        order = get_order(self._db_path, order_id)
        if order is None:
            return None
        return await self._enrich(order)

    async def list_orders(self, page: int = 1, limit: int = 10) -> PaginatedOrders:
        """
        Page of orders, each joined with a fresh product snapshot. Orders whose
        product cannot be fetched stay in the page with `product=None` (shown
        as a placeholder) rather than being left out, so the page size always
        agrees with the pagination totals.
        """
        orders, total = list_orders(self._db_path, Pagination.offset(page, limit), limit)
        enriched = [await self._enrich(order) for order in orders]
        return PaginatedOrders(enriched, Pagination.compute(total=total, page=page, limit=limit))

    async def _enrich(self, order: Order) -> OrderWithProduct:
        return OrderWithProduct(order, await self._products.fetch(order.product_id))

    def complete_order(self, order_id: str) -> Order:
        return self._transition(order_id, Order.complete)

    def cancel_order(self, order_id: str) -> Order:
        return self._transition(order_id, Order.cancel)

    def _transition(self, order_id: str, step: Callable[[Order], Order]) -> Order:
        order = get_order(self._db_path, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        updated = step(order)
        if not update_order_status(self._db_path, order_id, OrderStatus.PROCESSING, updated.status):
            raise InvalidTransition(f"Order {order_id} left Processing concurrently")
        logger.info("Order %s is now %s", order_id, updated.status.value)
        return updated
