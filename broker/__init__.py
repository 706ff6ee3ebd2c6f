"""Shared RabbitMQ broker config, setup and event channels."""

from broker.config import (
    EXCHANGE,
    QUEUE_QUANTITY_DECREASED,
    QUEUE_QUANTITY_DECREASED_DLQ,
    ROUTING_KEYS,
)

__all__ = [
    "EXCHANGE",
    "QUEUE_QUANTITY_DECREASED",
    "QUEUE_QUANTITY_DECREASED_DLQ",
    "ROUTING_KEYS",
]
