"""Declare the product events exchange, the decrement queue and its DLQ."""

import asyncio
import logging

import aio_pika
from aio_pika import ExchangeType

from broker.config import (
    EXCHANGE,
    QUEUE_QUANTITY_DECREASED,
    QUEUE_QUANTITY_DECREASED_DLQ,
    RABBIT_URL,
    ROUTING_KEY_QUANTITY_DECREASED,
)

logger = logging.getLogger(__name__)


async def declare_exchange(channel: aio_pika.abc.AbstractChannel) -> aio_pika.abc.AbstractExchange:
    return await channel.declare_exchange(EXCHANGE, ExchangeType.TOPIC, durable=True)


async def setup_queues(channel: aio_pika.abc.AbstractChannel) -> dict[str, aio_pika.abc.AbstractQueue]:
    """Declare exchange, queue, DLQ, and bindings. Returns queue map for consumers."""
    exchange = await declare_exchange(channel)

    # Rejected decrement messages (poison, or failed again on redelivery) land here
    await channel.declare_queue(QUEUE_QUANTITY_DECREASED_DLQ, durable=True)

    quantity_decreased = await channel.declare_queue(
        QUEUE_QUANTITY_DECREASED,
        durable=True,
        arguments={"x-dead-letter-exchange": "", "x-dead-letter-routing-key": QUEUE_QUANTITY_DECREASED_DLQ},
    )
    await quantity_decreased.bind(exchange, routing_key=ROUTING_KEY_QUANTITY_DECREASED)

    logger.info("Broker queues declared")
    return {"quantity_decreased": quantity_decreased}


async def connect_with_retry(
    url: str = RABBIT_URL,
    attempts: int = 30,
    delay: float = 2.0,
) -> aio_pika.abc.AbstractRobustConnection:
    """Connect to RabbitMQ, retrying while the broker starts up."""
    for attempt in range(attempts):
        try:
            return await aio_pika.connect_robust(url)
        except Exception as e:
            logger.warning("RabbitMQ connect attempt %s failed: %s", attempt + 1, e)
            await asyncio.sleep(delay)
    raise RuntimeError("Could not connect to RabbitMQ")
