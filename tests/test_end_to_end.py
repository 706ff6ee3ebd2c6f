"""
Order -> event -> catalog flow with both services wired in-process: the order
service reads stock over HTTP from the product app and the reconciler
consumes the decrement events from a shared in-memory channel.
"""

from __future__ import annotations

import httpx
import pytest

from common.errors import InsufficientStockError
from common.models import StockDecrementedEvent, StockUpdatedEvent
from common.storage import init_db
from common.values import Quantity
from order_service.orders import OrderService
from order_service.product_client import ProductServiceClient
from product_service.app import create_app
from product_service.catalog import CatalogService
from product_service.reconciler import ReconcileOutcome, StockDecrementReconciler


@pytest.fixture
def orders_db(tmp_path) -> str:
    path = str(tmp_path / "orders.db")
    init_db(path)
    return path


@pytest.fixture
def catalog(db_path, channel) -> CatalogService:
    return CatalogService(db_path, channel)


@pytest.fixture
def product_client(db_path, channel) -> ProductServiceClient:
    app = create_app(db_path, channel=channel, consume_events=False)
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app))
    return ProductServiceClient("http://product-service", client=http)


@pytest.fixture
def orders(orders_db, product_client, channel) -> OrderService:
    return OrderService(orders_db, product_client, channel)


@pytest.mark.asyncio
async def test_order_decrements_catalog_stock(catalog, orders, product_client, channel):
    reconciler = StockDecrementReconciler(catalog)
    channel.subscribe("product.quantity_decreased", reconciler.handle)
    product = await catalog.create_product("Espresso Beans", 12.5, 10)

    order = await orders.create_order(None, product.id, "Ann", 3)

    fresh = await product_client.fetch(product.id)
    assert fresh.quantity == Quantity(7)
    assert [m.routing_key for m in channel.messages] == [
        "product.created",
        "product.quantity_decreased",
        "product.updated",
    ]
    assert channel.dead_letters == []

    enriched = await orders.get_order(order.order_id)
    assert enriched.product.quantity == Quantity(7)


@pytest.mark.asyncio
async def test_sequential_orders_see_applied_decrements(catalog, orders, channel):
    reconciler = StockDecrementReconciler(catalog)
    channel.subscribe("product.quantity_decreased", reconciler.handle)
    product = await catalog.create_product("Kettle", 30, 5)

    await orders.create_order(None, product.id, "Ann", 3)
    with pytest.raises(InsufficientStockError) as exc_info:
        await orders.create_order(None, product.id, "Bob", 3)

    assert exc_info.value.available == 2


@pytest.mark.asyncio
async def test_orders_racing_on_stale_stock_are_clamped(catalog, orders, channel, caplog):
    # No subscriber yet: decrements queue up the way a lagging consumer would see them
    product = await catalog.create_product("Grinder", 89.0, 10)
    first = await orders.create_order(None, product.id, "Ann", 6)
    second = await orders.create_order(None, product.id, "Bob", 6)
    assert first.order_id != second.order_id

    backlog = channel.events(StockDecrementedEvent)
    assert [e.product.quantity for e in backlog] == [Quantity(10), Quantity(10)]

    reconciler = StockDecrementReconciler(catalog)
    outcomes = [await reconciler.handle(event) for event in backlog]

    assert outcomes == [ReconcileOutcome.RESOLVED, ReconcileOutcome.CLAMPED]
    assert catalog.get_product(product.id).quantity == Quantity(0)
    assert [e.product.quantity for e in channel.events(StockUpdatedEvent)] == [Quantity(4), Quantity(0)]
    assert "negative stock" in caplog.text

