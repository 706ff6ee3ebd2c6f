"""
Event Channel: topic publish of product events.

RabbitEventChannel publishes to the product events exchange with the routing
key of the event type. InMemoryEventChannel is the per-instance sink used by
tests and local wiring: it keeps an ordered list of everything published and
can hand events to subscribers in-process.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

import aio_pika

from broker.config import RABBIT_URL, ROUTING_KEYS
from broker.setup import declare_exchange
from common.models import BaseEvent

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseEvent)
Handler = Callable[[BaseEvent], Awaitable[object]]


class EventChannel(Protocol):
    async def publish(self, event: BaseEvent) -> None: ...


def routing_key_for(event: BaseEvent) -> str:
    try:
        return ROUTING_KEYS[event.event_type]
    except KeyError:
        raise ValueError(f"No routing key for event type {event.event_type!r}") from None


class RabbitEventChannel:
    """Publishes JSON events to the topic exchange. Connects on first publish."""

    def __init__(self, url: str = RABBIT_URL) -> None:
        self._url = url
        self._connection: aio_pika.abc.AbstractRobustConnection | None = None
        self._exchange: aio_pika.abc.AbstractExchange | None = None
        self._lock = asyncio.Lock()

    async def _get_exchange(self) -> aio_pika.abc.AbstractExchange:
        """Lazy init RabbitMQ connection and exchange."""
        if self._exchange is not None:
            return self._exchange
        async with self._lock:
            if self._exchange is None:
                self._connection = await aio_pika.connect_robust(self._url)
                channel = await self._connection.channel()
                self._exchange = await declare_exchange(channel)
        return self._exchange

    async def publish(self, event: BaseEvent) -> None:
        routing_key = routing_key_for(event)
        exchange = await self._get_exchange()
        await exchange.publish(
            aio_pika.Message(
                body=event.model_dump_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                type=event.event_type,
                correlation_id=event.correlation_id,
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            ),
            routing_key=routing_key,
        )
        logger.info("Published %s %s (%s)", event.event_type, event.event_id, routing_key)

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
        self._connection = None
        self._exchange = None


@dataclass(frozen=True)
class PublishedMessage:
    routing_key: str
    event: BaseEvent


@dataclass(frozen=True)
class DeadLetter:
    routing_key: str
    event: BaseEvent
    error: str


class InMemoryEventChannel:
    """
    In-process channel. Subscribers run in publish order; a subscriber that
    raises is logged and recorded in `dead_letters` instead of failing the
    publisher, the way a broker decouples the two sides.
    """

    def __init__(self) -> None:
        self._messages: list[PublishedMessage] = []
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)
        self.dead_letters: list[DeadLetter] = []

    async def publish(self, event: BaseEvent) -> None:
        routing_key = routing_key_for(event)
        self._messages.append(PublishedMessage(routing_key, event))
        for handler in list(self._subscribers.get(routing_key, ())):
            try:
                await handler(event)
            except Exception as exc:
                logger.exception("Subscriber failed on %s %s", routing_key, event.event_id)
                self.dead_letters.append(DeadLetter(routing_key, event, str(exc)))

    def subscribe(self, routing_key: str, handler: Handler) -> None:
        self._subscribers[routing_key].append(handler)

    @property
    def messages(self) -> list[PublishedMessage]:
        return list(self._messages)

    def events(self, event_type: type[E]) -> list[E]:
        return [m.event for m in self._messages if isinstance(m.event, event_type)]

    def clear(self) -> None:
        self._messages.clear()
        self.dead_letters.clear()
