"""
Product consumer: reads StockDecremented messages from the decrement queue
and hands them to the reconciler.

Delivery policy:
- malformed or unexpected messages are rejected straight to the DLQ;
- a reconciler exception requeues the message once, and dead-letters it if
  it fails again on redelivery;
- anything else (including NotFound and Failed outcomes) is acked.
"""

import asyncio
import logging

import aio_pika

from broker.channel import EventChannel, RabbitEventChannel
from broker.config import QUEUE_QUANTITY_DECREASED, RABBIT_URL
from broker.setup import connect_with_retry, setup_queues
from common import init_db, setup_logging
from common.models import StockDecrementedEvent, parse_event
from product_service.catalog import CatalogService, validator_for
from product_service.config import (
    DB_PATH,
    PRODUCT_VALIDATION,
    RECONCILER_DEDUPE,
    RECONCILER_REQUEUE_ON_FAILURE,
)
from product_service.reconciler import SqliteProcessedEvents, StockDecrementReconciler

logger = logging.getLogger(__name__)


def parse_decrement_event(body: bytes) -> StockDecrementedEvent | None:
    """Parse StockDecrementedEvent from JSON. Returns None if malformed (poison)."""
    try:
        event = parse_event(body)
    except ValueError as e:
        logger.warning("Malformed stock decrement message (rejecting to DLQ): %s", type(e).__name__)
        return None
    if not isinstance(event, StockDecrementedEvent):
        logger.warning("Unexpected %s on decrement queue (rejecting to DLQ)", event.event_type)
        return None
    return event


async def handle_message(
    message: aio_pika.abc.AbstractIncomingMessage,
    reconciler: StockDecrementReconciler,
) -> None:
    event = parse_decrement_event(message.body)
    if event is None:
        await message.reject(requeue=False)
        return

    try:
        outcome = await reconciler.handle(event)
    except Exception:
        requeue = not message.redelivered
        logger.warning(
            "Stock decrement %s not processed, %s",
            event.event_id,
            "requeueing" if requeue else "dead-lettering",
        )
        await message.reject(requeue=requeue)
        return

    await message.ack()
    logger.info("Stock decrement %s acked (%s)", event.event_id, outcome.value)


def build_reconciler(
    db_path: str,
    channel: EventChannel,
    dedupe: bool = RECONCILER_DEDUPE,
    requeue_on_failure: bool = RECONCILER_REQUEUE_ON_FAILURE,
) -> StockDecrementReconciler:
    catalog = CatalogService(db_path, channel, validator_for(PRODUCT_VALIDATION))
    return StockDecrementReconciler(
        catalog,
        processed=SqliteProcessedEvents(db_path) if dedupe else None,
        raise_on_failure=requeue_on_failure,
    )


async def run_consumer(
    reconciler: StockDecrementReconciler,
    url: str = RABBIT_URL,
) -> aio_pika.abc.AbstractRobustConnection:
    """Start consuming the decrement queue. Returns the connection so the caller can close it."""
    connection = await connect_with_retry(url)
    channel = await connection.channel()
    await channel.set_qos(prefetch_count=1)
    queues = await setup_queues(channel)
    queue = queues["quantity_decreased"]

    async def on_message(message: aio_pika.abc.AbstractIncomingMessage):
        await handle_message(message, reconciler)

    await queue.consume(on_message)
    logger.info("Product service consuming %s", QUEUE_QUANTITY_DECREASED)
    return connection


async def main():
    setup_logging("product-consumer")
    init_db(DB_PATH)
    channel = RabbitEventChannel()
    connection = await run_consumer(build_reconciler(DB_PATH, channel))
    try:
        await asyncio.Future()
    finally:
        await connection.close()
        await channel.close()


if __name__ == "__main__":
    asyncio.run(main())
