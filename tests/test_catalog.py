"""Tests for the catalog write path."""

from __future__ import annotations

import pytest

from common.errors import ValidationError
from common.models import StockCreatedEvent, StockUpdatedEvent
from common.storage import delete_product
from common.values import Money, Quantity
from product_service.catalog import CatalogService, reject_negative_values, validator_for


@pytest.fixture
def catalog(db_path, channel) -> CatalogService:
    return CatalogService(db_path, channel)


@pytest.mark.asyncio
async def test_create_product_persists_and_announces(catalog, channel):
    product = await catalog.create_product("Grinder", 89.999, 5)

    assert product.price == Money(9000)
    assert catalog.get_product(product.id) == product

    [message] = channel.messages
    assert message.routing_key == "product.created"
    assert isinstance(message.event, StockCreatedEvent)
    assert message.event.product == product


@pytest.mark.asyncio
async def test_create_product_accepts_negative_values_by_default(catalog):
    product = await catalog.create_product("Refund", -2.5, -1)
    assert product.price == Money(-250)
    assert product.quantity == Quantity(-1)


@pytest.mark.asyncio
async def test_strict_validator_rejects_negative_values(db_path, channel):
    catalog = CatalogService(db_path, channel, validator_for("strict"))

    with pytest.raises(ValidationError, match="Price"):
        await catalog.create_product("Refund", -2.5, 1)
    with pytest.raises(ValidationError, match="Quantity"):
        await catalog.create_product("Refund", 2.5, -1)
    assert channel.messages == []


@pytest.mark.asyncio
@pytest.mark.parametrize("price,quantity", [(1e30, 1), ("1e25", 1), (1.0, 2**63)])
async def test_create_product_rejects_unstorable_values(catalog, channel, price, quantity):
    with pytest.raises(ValidationError):
        await catalog.create_product("Vault", price, quantity)
    assert channel.messages == []
    assert catalog.list_products()[1].total == 0


def test_validator_settings():
    assert validator_for("none") is None
    assert validator_for("strict") is reject_negative_values
    with pytest.raises(ValueError):
        validator_for("paranoid")


@pytest.mark.asyncio
async def test_update_quantity_writes_absolute_value_and_announces(catalog, channel):
    product = await catalog.create_product("Kettle", 30, 8)
    channel.clear()

    assert await catalog.update_product_quantity(product.id, 3)

    assert catalog.get_product(product.id).quantity == Quantity(3)
    [event] = channel.events(StockUpdatedEvent)
    assert event.product.quantity == Quantity(3)
    assert channel.messages[0].routing_key == "product.updated"


@pytest.mark.asyncio
async def test_update_quantity_on_deleted_product_fails_quietly(catalog, channel, db_path):
    product = await catalog.create_product("Kettle", 30, 8)
    delete_product(db_path, product.id)
    channel.clear()

    assert not await catalog.update_product_quantity(product.id, 3)
    assert channel.messages == []


@pytest.mark.asyncio
async def test_list_products_paginates(catalog):
    for n in range(3):
        await catalog.create_product(f"P{n}", 1, n)

    products, pagination = catalog.list_products(page=2, limit=2)

    assert len(products) == 1
    assert pagination.model_dump() == {"page": 2, "limit": 2, "total": 3, "pages": 2}
