"""Shared fixtures for the order/product service tests."""

from __future__ import annotations

import pytest

from broker.channel import InMemoryEventChannel
from common.models import ProductSnapshot
from common.storage import init_db
from common.values import Money, Quantity

PRODUCT_ID = "019abba0-fffb-780c-9b4f-9c4934250a44"
UNKNOWN_PRODUCT_ID = "019abba0-0000-7000-8000-000000000000"


class StubStockQuery:
    """Stock Query Port double: answers from a dict and records every lookup."""

    def __init__(self, *products: ProductSnapshot) -> None:
        self.products = {p.id: p for p in products}
        self.calls: list[str] = []

    def put(self, product: ProductSnapshot) -> None:
        self.products[product.id] = product

    async def fetch(self, product_id: str) -> ProductSnapshot | None:
        self.calls.append(product_id)
        return self.products.get(product_id)


def make_product(
    product_id: str = PRODUCT_ID,
    name: str = "Espresso Beans",
    price: str = "12.50",
    quantity: int = 10,
) -> ProductSnapshot:
    return ProductSnapshot(
        id=product_id,
        name=name,
        price=Money.from_major_units(price),
        quantity=Quantity(quantity),
    )


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "service.db")
    init_db(path)
    return path


@pytest.fixture
def channel() -> InMemoryEventChannel:
    return InMemoryEventChannel()


@pytest.fixture
def product() -> ProductSnapshot:
    return make_product()


@pytest.fixture
def stock_query(product: ProductSnapshot) -> StubStockQuery:
    return StubStockQuery(product)
