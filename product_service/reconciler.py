"""
Stock Decrement Reconciler.

Applies a StockDecrementedEvent to the authoritative product row:

    Received -> Resolved | Clamped | NotFound | Failed

Only the product id and the amount are taken from the event; the embedded
snapshot is from order time and may be stale, so current stock is always
re-read before computing the new value. A result below zero means two
orders were admitted against the same stock; it is logged at error level
and written as 0.

Redelivery: without a ProcessedEvents store the same event applied twice
decrements twice. With one, an event id is recorded once its write
succeeds and later copies are not written again. A skipped copy still
re-announces the product's current state, since the first delivery may
have failed between the write and its StockUpdated publish.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from common.errors import ReconciliationFailure
from common.models import StockDecrementedEvent
from common.storage import is_message_processed, mark_message_processed
from product_service.catalog import CatalogService

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    RESOLVED = "resolved"
    CLAMPED = "clamped"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    DUPLICATE = "duplicate"


class ProcessedEvents(Protocol):
    def seen(self, event_id: str) -> bool: ...

    def record(self, event_id: str) -> None: ...


class SqliteProcessedEvents:
    """Processed event ids kept in the catalog database."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def seen(self, event_id: str) -> bool:
        return is_message_processed(self._db_path, event_id)

    def record(self, event_id: str) -> None:
        mark_message_processed(self._db_path, event_id)


class StockDecrementReconciler:
    def __init__(
        self,
        catalog: CatalogService,
        processed: ProcessedEvents | None = None,
        raise_on_failure: bool = False,
    ) -> None:
        self._catalog = catalog
        self._processed = processed
        self._raise_on_failure = raise_on_failure

    async def handle(self, event: StockDecrementedEvent) -> ReconcileOutcome:
        """
        Apply one decrement. Unexpected errors are logged and re-raised so the
        transport treats the message as not processed.
        """
        context = {
            "event_id": event.event_id,
            "product_id": event.product.id,
            "quantity_to_decrease": event.amount,
            "reason": event.reason,
        }
        logger.info("Processing stock decrement event", extra={"context": context})
        try:
            return await self._apply(event, context)
        except ReconciliationFailure:
            raise
        except Exception:
            logger.exception("Failed to process stock decrement event", extra={"context": context})
            raise

    async def _apply(self, event: StockDecrementedEvent, context: dict) -> ReconcileOutcome:
        product_id = event.product.id

        if self._processed is not None and self._processed.seen(event.event_id):
            logger.info("Duplicate stock decrement event skipped", extra={"context": context})
            await self._catalog.publish_current(product_id)
            return ReconcileOutcome.DUPLICATE

        current = self._catalog.get_product(product_id)
        if current is None:
            logger.warning("Product not found for stock decrement", extra={"context": context})
            return ReconcileOutcome.NOT_FOUND

        new_quantity = current.quantity.minus(event.amount)
        clamped = new_quantity.is_negative
        if clamped:
            logger.error(
                "Stock decrement would result in negative stock",
                extra={
                    "context": {
                        **context,
                        "current_quantity": current.quantity.value,
                        "calculated_quantity": new_quantity.value,
                    }
                },
            )
            new_quantity = new_quantity.clamped()

        if not self._catalog.write_quantity(product_id, new_quantity.value):
            logger.error(
                "Failed to write decremented quantity",
                extra={"context": {**context, "new_quantity": new_quantity.value}},
            )
            if self._raise_on_failure:
                raise ReconciliationFailure(product_id, new_quantity.value)
            return ReconcileOutcome.FAILED

        if self._processed is not None:
            self._processed.record(event.event_id)

        await self._catalog.publish_current(product_id)
        logger.info(
            "Product quantity decreased successfully",
            extra={
                "context": {
                    **context,
                    "previous_quantity": current.quantity.value,
                    "new_quantity": new_quantity.value,
                }
            },
        )
        return ReconcileOutcome.CLAMPED if clamped else ReconcileOutcome.RESOLVED
