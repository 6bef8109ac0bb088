"""
ETL Worker.

Consumes approved jokes from the MODERATED queue, writes them to the Store and,
when a joke introduces a new type, broadcasts the full type list on the
``type_update`` fanout exchange.

Delivery is at-least-once: a message is acknowledged only after the combined
type upsert and joke insert succeeds, and is requeued on any failure. A crash between
the insert and the ack redelivers the message and stores the joke twice.
Malformed payloads are requeued as well, with no dead-lettering.
"""
import logging

from pydantic import ValidationError as PydanticValidationError

from joke_common.errors import ProcessingError, StoreError
from joke_common.messaging.connection import BrokerConnection
from joke_common.messaging.handlers import HandlerOutcome
from joke_common.models.dtos import QueuedJoke, TypeUpdateEvent, normalize_type
from joke_common.monitoring.metrics import ETL_MESSAGES, TYPE_EVENTS_PUBLISHED
from joke_service.storage.base_store import JokeStore

logger = logging.getLogger(__name__)


class ETLWorker:
    def __init__(self, store: JokeStore, broker: BrokerConnection, exchange_name: str):
        self.store = store
        self.broker = broker
        self.exchange_name = exchange_name

    async def handle_message(self, body: bytes) -> HandlerOutcome:
        """
        Message handler for the MODERATED queue.

        Returns ACK (with a broadcast follow-up when a new type was created) or
        NACK_REQUEUE on any ProcessingError.
        """
        try:
            joke = self.parse(body)
            type_created = await self.load(joke)
        except ProcessingError as e:
            logger.error(f"Failed to process moderated joke, requeueing: {e}", exc_info=True)
            ETL_MESSAGES.labels(result="requeued").inc()
            return HandlerOutcome.nack_requeue()

        ETL_MESSAGES.labels(result="stored").inc()
        if type_created:
            return HandlerOutcome.ack(follow_up=self.broadcast_types)
        return HandlerOutcome.ack()

    def parse(self, body: bytes) -> QueuedJoke:
        try:
            return QueuedJoke.model_validate_json(body)
        except PydanticValidationError as e:
            raise ProcessingError(f"Malformed moderated payload: {e}") from e

    async def load(self, joke: QueuedJoke) -> bool:
        """
        Upsert the type and insert the joke in one store call.

        Returns:
            True if this message's joke is the first stored for a new type. A
            requeued retry after a failed insert still reports the type as new.
        """
        type_name = normalize_type(joke.type)
        try:
            type_created = await self.store.insert_joke_with_type(type_name, joke.setup, joke.punchline)
        except StoreError as e:
            raise ProcessingError(f"Store failure while inserting joke: {e}") from e

        if type_created:
            logger.info(f"Created new joke type: {type_name}")
        logger.info(f"Joke inserted into {self.store.backend_name} store (type={type_name})")
        return type_created

    async def broadcast_types(self) -> TypeUpdateEvent:
        """Publish the full, current type list to every subscriber."""
        types = await self.store.list_distinct_types()
        event = TypeUpdateEvent(types=types)
        await self.broker.broadcast(self.exchange_name, event.model_dump())
        TYPE_EVENTS_PUBLISHED.inc()
        logger.info(f"Published type_update event with {len(types)} types to {self.exchange_name}")
        return event
