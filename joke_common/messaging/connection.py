"""
Connection manager for the message broker.

``BrokerConnection`` owns one AMQP connection and channel. It is created once per
process, initialized by the ``ReconnectSupervisor`` and torn down on shutdown.
Callers use the capability methods (``publish``, ``broadcast``, ``get``,
``consume``); each raises ``BrokerUnavailable`` when no live channel exists.
"""
import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import aio_pika
from aio_pika.exceptions import AMQPError
from aiormq.exceptions import ChannelInvalidStateError
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractExchange,
    AbstractIncomingMessage,
    AbstractQueue,
)

from joke_common.errors import BrokerUnavailable
from joke_common.messaging.handlers import MessageHandler, dispatch

logger = logging.getLogger(__name__)

# A channel closed under us surfaces as ChannelInvalidStateError, which is not an AMQPError.
BROKER_ERRORS = (AMQPError, ChannelInvalidStateError)


def encode_payload(payload: Mapping[str, Any]) -> aio_pika.Message:
    """Wrap a JSON-serialisable mapping in a persistent AMQP message."""
    return aio_pika.Message(
        body=json.dumps(payload).encode("utf-8"),
        content_type="application/json",
        delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
    )


class BrokerConnection:
    """
    Explicit connection/channel lifecycle plus the publish/get/consume capabilities.
    """

    def __init__(self, url: str, prefetch_count: int = 10):
        self.url = url
        self.prefetch_count = prefetch_count
        self._connection: Optional[AbstractConnection] = None
        self._channel: Optional[AbstractChannel] = None
        self._queues: Dict[str, AbstractQueue] = {}
        self._exchanges: Dict[str, AbstractExchange] = {}
        self._consumers: List[asyncio.Task] = []
        self._closed = asyncio.Event()

    @property
    def is_connected(self) -> bool:
        return (
            self._connection is not None
            and not self._connection.is_closed
            and self._channel is not None
            and not self._channel.is_closed
        )

    async def initialize(self) -> None:
        """Open the connection and channel. Topology is declared by the caller afterwards."""
        self._closed = asyncio.Event()
        self._connection = await aio_pika.connect(self.url)
        self._connection.close_callbacks.add(self._on_close)
        self._channel = await self._connection.channel()
        self._channel.close_callbacks.add(self._on_close)
        await self._channel.set_qos(prefetch_count=self.prefetch_count)
        logger.info(f"Connected to broker at {self.url}")

    async def teardown(self) -> None:
        """Stop consumers and close the channel and connection. Safe to call repeatedly."""
        consumers, self._consumers = self._consumers, []
        for task in consumers:
            task.cancel()
        for task in consumers:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Consumer task ended with error during teardown: {e}")

        connection, self._connection = self._connection, None
        self._channel = None
        self._queues.clear()
        self._exchanges.clear()
        if connection is not None and not connection.is_closed:
            try:
                await connection.close()
            except Exception as e:
                logger.warning(f"Error while closing broker connection: {e}")
        self._closed.set()

    async def wait_closed(self) -> None:
        """Return once the connection, the channel or a consumer task has gone away."""
        await self._closed.wait()

    def _on_close(self, sender: Any, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            logger.error(f"Broker connection closed: {exc}")
        self._closed.set()

    def _require_channel(self) -> AbstractChannel:
        if not self.is_connected:
            raise BrokerUnavailable("Broker channel not available. Please try again later.")
        return self._channel

    async def declare_queue(self, name: str) -> AbstractQueue:
        channel = self._require_channel()
        queue = await channel.declare_queue(name, durable=True)
        self._queues[name] = queue
        return queue

    async def declare_fanout_exchange(self, name: str) -> AbstractExchange:
        channel = self._require_channel()
        exchange = await channel.declare_exchange(name, aio_pika.ExchangeType.FANOUT, durable=True)
        self._exchanges[name] = exchange
        return exchange

    async def bind(self, queue_name: str, exchange_name: str) -> None:
        queue = self._queues.get(queue_name) or await self.declare_queue(queue_name)
        exchange = self._exchanges.get(exchange_name) or await self.declare_fanout_exchange(exchange_name)
        await queue.bind(exchange, routing_key="")

    async def publish(self, queue_name: str, payload: Mapping[str, Any]) -> None:
        """Send a persistent message straight to ``queue_name`` through the default exchange."""
        channel = self._require_channel()
        try:
            await channel.default_exchange.publish(encode_payload(payload), routing_key=queue_name)
        except BROKER_ERRORS as e:
            raise BrokerUnavailable(f"Failed to publish to {queue_name}: {e}") from e

    async def broadcast(self, exchange_name: str, payload: Mapping[str, Any]) -> None:
        """Publish to every queue bound to the fanout exchange ``exchange_name``."""
        self._require_channel()
        try:
            exchange = self._exchanges.get(exchange_name) or await self.declare_fanout_exchange(exchange_name)
            await exchange.publish(encode_payload(payload), routing_key="")
        except BROKER_ERRORS as e:
            raise BrokerUnavailable(f"Failed to publish to exchange {exchange_name}: {e}") from e

    async def get(self, queue_name: str) -> Optional[AbstractIncomingMessage]:
        """Non-blocking fetch of a single message; ``None`` when the queue is empty."""
        self._require_channel()
        try:
            queue = self._queues.get(queue_name) or await self.declare_queue(queue_name)
            return await queue.get(no_ack=False, fail=False)
        except BROKER_ERRORS as e:
            raise BrokerUnavailable(f"Failed to get from {queue_name}: {e}") from e

    async def consume(self, queue_name: str, handler: MessageHandler) -> asyncio.Task:
        """
        Start a consumer task that feeds every delivery on ``queue_name`` to ``handler``.

        The task lives until teardown. If it dies on its own the connection is
        considered lost and ``wait_closed`` returns.
        """
        self._require_channel()
        queue = self._queues.get(queue_name) or await self.declare_queue(queue_name)
        task = asyncio.create_task(self._consume_loop(queue, handler), name=f"consume:{queue_name}")
        task.add_done_callback(self._on_consumer_done)
        self._consumers.append(task)
        logger.info(f"Consuming from queue: {queue_name}")
        return task

    async def _consume_loop(self, queue: AbstractQueue, handler: MessageHandler) -> None:
        async with queue.iterator() as queue_iter:
            async for message in queue_iter:
                await dispatch(message, handler)

    def _on_consumer_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Consumer {task.get_name()} stopped: {exc}")
        self._closed.set()
