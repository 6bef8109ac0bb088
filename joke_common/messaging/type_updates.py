import logging

from joke_common.messaging.connection import BrokerConnection
from joke_common.messaging.handlers import MessageHandler

logger = logging.getLogger(__name__)


async def subscribe_type_updates(
    broker: BrokerConnection,
    queue_name: str,
    exchange_name: str,
    handler: MessageHandler,
) -> None:
    """
    Bind this service's private durable queue to the fanout exchange and start consuming it.

    Every subscriber owns its own queue, so each receives its own copy of every event.
    """
    await broker.declare_fanout_exchange(exchange_name)
    await broker.declare_queue(queue_name)
    await broker.bind(queue_name, exchange_name)
    await broker.consume(queue_name, handler)
    logger.info(f"Subscribed to {exchange_name} events via: {queue_name}")
