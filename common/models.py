"""
Pydantic v2 data models for products, orders, pagination and events.

Framework-agnostic; safe to use from FastAPI (request/response bodies) or
the broker consumer. Snapshots and events are frozen: a change always
produces a new instance.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator

from common.errors import InvalidTransition, ValidationError
from common.ids import new_event_id, now_iso, parse_id
from common.values import Money, Quantity


# -----------------------------------------------------------------------------
# Product snapshot
# -----------------------------------------------------------------------------


class ProductSnapshot(BaseModel):
    """
    Copy of a product's fields at read time. Wire form is
    {id, name, price, quantity} with price in major units.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", arbitrary_types_allowed=True)

    id: str
    name: str
    price: Money
    quantity: Quantity

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Money:
        if isinstance(value, Money):
            return value
        try:
            return Money.from_major_units(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> Quantity:
        try:
            return Quantity.of(value)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_serializer("price")
    def _dump_price(self, price: Money) -> float:
        return price.to_major_units()

    @field_serializer("quantity")
    def _dump_quantity(self, quantity: Quantity) -> int:
        return quantity.value

    def has_available_quantity(self, requested: int) -> bool:
        return self.quantity.covers(requested)

    def with_quantity(self, quantity: Quantity) -> ProductSnapshot:
        return self.model_copy(update={"quantity": quantity})


# -----------------------------------------------------------------------------
# Orders
# -----------------------------------------------------------------------------


class OrderStatus(str, Enum):
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Order(BaseModel):
    """Persisted order. product_id is a weak reference resolved at read time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    order_id: str
    product_id: str
    customer_name: str
    quantity_ordered: int = Field(..., gt=0)
    status: OrderStatus = OrderStatus.PROCESSING
    created_at: str = Field(default_factory=now_iso)

    def complete(self) -> Order:
        return self._transition(OrderStatus.COMPLETED)

    def cancel(self) -> Order:
        return self._transition(OrderStatus.CANCELLED)

    def _transition(self, target: OrderStatus) -> Order:
        if self.status is not OrderStatus.PROCESSING:
            raise InvalidTransition(
                f"Order {self.order_id} is {self.status.value}, cannot become {target.value}"
            )
        return self.model_copy(update={"status": target})


class OrderCreateRequest(BaseModel):
    """Body of POST /order. Field checks with client-facing messages live in from_payload()."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_id: str = Field(..., alias="productId")
    customer_name: str | None = Field(None, alias="customerName")
    quantity_ordered: int = Field(0, alias="quantityOrdered")
    order_id: str | None = Field(None, alias="orderId")

    @field_validator("product_id", "order_id")
    @classmethod
    def _canonical_id(cls, value: str | None) -> str | None:
        return None if value is None else parse_id(value)

    @classmethod
    def from_payload(cls, payload: Any) -> OrderCreateRequest:
        """
        Accepts {"data": {...}} or the bare object. Raises
        common.errors.ValidationError with the message shown to the client.
        """
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise ValidationError()
        try:
            request = cls.model_validate(payload)
        except ValueError as e:
            raise ValidationError() from e
        if not (request.customer_name or "").strip():
            raise ValidationError("Customer name is required")
        if request.quantity_ordered <= 0:
            raise ValidationError("Quantity ordered must be greater than 0")
        return request


class ProductCreateRequest(BaseModel):
    """Body of POST /product. No range checks here; see the catalog validation hook."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    price: float = 0.0
    quantity: int = 0


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def compute(cls, total: int, page: int, limit: int) -> Pagination:
        """
        An empty collection still reports one page.

        >>> Pagination.compute(total=0, page=1, limit=10).pages
        1
        >>> Pagination.compute(total=100, page=1, limit=5).pages
        20
        >>> Pagination.compute(total=15, page=2, limit=5).pages
        3
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        return cls(page=page, limit=limit, total=total, pages=math.ceil(max(1, total) / limit))

    @staticmethod
    def offset(page: int, limit: int) -> int:
        return (page - 1) * limit


# -----------------------------------------------------------------------------
# Events (for RabbitMQ)
# -----------------------------------------------------------------------------


class BaseEvent(BaseModel):
    """Base event with event_id, event_type, created_at, optional correlation_id."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str = Field(default_factory=new_event_id)
    event_type: str
    created_at: str = Field(default_factory=now_iso)
    correlation_id: str | None = None


class StockCreatedEvent(BaseEvent):
    """Emitted by the catalog after a product is created."""

    event_type: Literal["StockCreated"] = "StockCreated"
    product: ProductSnapshot


class StockUpdatedEvent(BaseEvent):
    """Emitted by the catalog after a product's quantity was written."""

    event_type: Literal["StockUpdated"] = "StockUpdated"
    product: ProductSnapshot


class StockDecrementedEvent(BaseEvent):
    """
    Emitted by the order service on admission. `product` is the snapshot at
    order time and may be stale by the time it is consumed; consumers trust
    only product.id and amount.
    """

    event_type: Literal["StockDecremented"] = "StockDecremented"
    product: ProductSnapshot
    amount: int = Field(..., gt=0)
    reason: str = "order_created"

    @classmethod
    def for_order(
        cls,
        product: ProductSnapshot,
        amount: int,
        order_id: str,
        reason: str = "order_created",
    ) -> StockDecrementedEvent:
        """Build the decrement event for an admitted order."""
        return cls(
            event_id=new_event_id(),
            created_at=now_iso(),
            correlation_id=order_id,
            product=product,
            amount=amount,
            reason=reason,
        )


ProductEvent = Annotated[
    Union[StockCreatedEvent, StockUpdatedEvent, StockDecrementedEvent],
    Field(discriminator="event_type"),
]

_product_event_adapter: TypeAdapter[ProductEvent] = TypeAdapter(ProductEvent)


def parse_event(body: bytes | str) -> BaseEvent:
    """Decode a JSON message body into its concrete event type."""
    return _product_event_adapter.validate_json(body)
