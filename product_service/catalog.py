"""
Catalog read and write path. The catalog is the only writer of products and
announces every change on the product events exchange.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from broker.channel import EventChannel
from common.errors import ValidationError
from common.ids import new_product_id
from common.models import Pagination, ProductSnapshot, StockCreatedEvent, StockUpdatedEvent
from common.storage import create_product, get_product, list_products, update_product_quantity
from common.values import Money, Quantity

logger = logging.getLogger(__name__)

ProductValidator = Callable[[str, Money, Quantity], None]


def reject_negative_values(name: str, price: Money, quantity: Quantity) -> None:
    if price.cents < 0:
        raise ValidationError("Price must not be negative")
    if quantity.is_negative:
        raise ValidationError("Quantity must not be negative")


_VALIDATORS: dict[str, ProductValidator | None] = {
    "none": None,
    "strict": reject_negative_values,
}


def validator_for(setting: str) -> ProductValidator | None:
    try:
        return _VALIDATORS[setting]
    except KeyError:
        raise ValueError(f"Unknown PRODUCT_VALIDATION setting {setting!r}") from None


class CatalogService:
    """
    Product store operations. Creation does no range checks unless a
    validator is installed, so negative prices and quantities are accepted
    by default.
    """

    def __init__(
        self,
        db_path: str,
        channel: EventChannel,
        validator: ProductValidator | None = None,
    ) -> None:
        self._db_path = db_path
        self._channel = channel
        self._validator = validator

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        return get_product(self._db_path, product_id)

    def list_products(self, page: int = 1, limit: int = 10) -> tuple[list[ProductSnapshot], Pagination]:
        products, total = list_products(self._db_path, Pagination.offset(page, limit), limit)
        return products, Pagination.compute(total=total, page=page, limit=limit)

    async def create_product(self, name: str, price: float | Money, quantity: int) -> ProductSnapshot:
        """
        Persist a new product and announce it. Values that cannot be held as
        cents or stored as SQLite integers raise ValidationError.
        """
        try:
            price = price if isinstance(price, Money) else Money.from_major_units(price)
            stock = Quantity.of(quantity)
        except ValueError as e:
            raise ValidationError() from e
        if self._validator is not None:
            self._validator(name, price, stock)

        product = ProductSnapshot(id=new_product_id(), name=name, price=price, quantity=stock)
        try:
            create_product(self._db_path, product)
        except OverflowError as e:
            raise ValidationError() from e
        await self._channel.publish(StockCreatedEvent(product=product))
        logger.info("Product %s created (price=%s quantity=%s)", product.id, price, stock)
        return product

    def write_quantity(self, product_id: str, new_quantity: int) -> bool:
        """Absolute quantity write, no event. False if the product is gone."""
        return update_product_quantity(self._db_path, product_id, new_quantity)

    async def publish_current(self, product_id: str) -> ProductSnapshot | None:
        """Re-read the product and announce it; nothing is sent if it no longer exists."""
        product = get_product(self._db_path, product_id)
        if product is not None:
            await self._channel.publish(StockUpdatedEvent(product=product))
        return product

    async def update_product_quantity(self, product_id: str, new_quantity: int) -> bool:
        if not self.write_quantity(product_id, new_quantity):
            return False
        await self.publish_current(product_id)
        return True
