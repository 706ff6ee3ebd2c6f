"""
Shared kernel for the order and product services.

Value types, snapshot/event contracts, the error taxonomy, ids, logging and
SQLite storage. Framework-agnostic apart from common.api, which holds the
FastAPI glue and is imported explicitly by the apps.
"""

from common.errors import (
    InsufficientStockError,
    NotFoundError,
    OrderNotFound,
    ProductNotFound,
    ReconciliationFailure,
    ServiceError,
    TransportError,
    ValidationError,
)
from common.ids import new_event_id, new_order_id, new_product_id, now_iso, parse_id
from common.logging import setup_logging
from common.models import (
    BaseEvent,
    Order,
    OrderCreateRequest,
    OrderStatus,
    Pagination,
    ProductCreateRequest,
    ProductSnapshot,
    StockCreatedEvent,
    StockDecrementedEvent,
    StockUpdatedEvent,
    parse_event,
)
from common.storage import init_db
from common.values import Money, Quantity

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ProductNotFound",
    "OrderNotFound",
    "InsufficientStockError",
    "TransportError",
    "ReconciliationFailure",
    "new_order_id",
    "new_product_id",
    "new_event_id",
    "now_iso",
    "parse_id",
    "setup_logging",
    "Money",
    "Quantity",
    "ProductSnapshot",
    "Order",
    "OrderStatus",
    "OrderCreateRequest",
    "ProductCreateRequest",
    "Pagination",
    "BaseEvent",
    "StockCreatedEvent",
    "StockUpdatedEvent",
    "StockDecrementedEvent",
    "parse_event",
    "init_db",
]
