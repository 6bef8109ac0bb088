"""
Moderation Worker.

Pending submissions are pulled one at a time with a non-blocking get and
acknowledged as soon as they are fetched, before the reviewer decides anything.
Approved jokes are published to the MODERATED queue; rejections are dropped.
"""
import enum
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from joke_common.errors import BrokerUnavailable, ProcessingError, ValidationError
from joke_common.messaging.connection import BROKER_ERRORS, BrokerConnection
from joke_common.models.dtos import JokeSubmission, QueuedJoke, normalize_type
from joke_common.monitoring.metrics import MODERATION_DECISIONS
from joke_common.type_cache import TypeCache

logger = logging.getLogger(__name__)


class DecisionStatus(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ModerationWorker:
    def __init__(
        self,
        broker: BrokerConnection,
        type_cache: TypeCache,
        submitted_queue: str,
        moderated_queue: str,
    ):
        self.broker = broker
        self.type_cache = type_cache
        self.submitted_queue = submitted_queue
        self.moderated_queue = moderated_queue

    async def fetch_next(self) -> Optional[QueuedJoke]:
        """
        Pull at most one pending submission.

        Returns:
            The submission, or None when the queue is empty.

        Raises:
            BrokerUnavailable: If there is no live channel.
            ProcessingError: If the fetched payload is not a valid submission.
                The message has already been removed from the queue.
        """
        message = await self.broker.get(self.submitted_queue)
        if message is None:
            return None

        # The item leaves SUBMITTED here for good, whatever the reviewer does next.
        try:
            await message.ack()
        except BROKER_ERRORS as e:
            raise BrokerUnavailable(f"Failed to acknowledge fetched submission: {e}") from e

        try:
            joke = QueuedJoke.model_validate_json(message.body)
        except PydanticValidationError as e:
            logger.warning(f"Discarded malformed submission from {self.submitted_queue}: {e}")
            raise ProcessingError(f"Malformed submission payload: {e}") from e

        logger.info(f"Fetched joke for moderation: type={joke.type}")
        return joke

    async def decide(
        self,
        approved: Optional[bool],
        setup: Optional[str],
        punchline: Optional[str],
        type_name: Optional[str],
    ) -> DecisionStatus:
        """
        Apply a reviewer decision.

        Anything other than ``approved is True`` is a silent, terminal rejection.

        Raises:
            ValidationError: If approved but a field is missing. Nothing is published.
            BrokerUnavailable: If there is no live channel.
        """
        if approved is not True:
            logger.info("Joke rejected by moderator")
            MODERATION_DECISIONS.labels(decision=DecisionStatus.REJECTED.value).inc()
            return DecisionStatus.REJECTED

        missing = JokeSubmission(setup=setup, punchline=punchline, type=type_name).missing_fields()
        if missing:
            raise ValidationError(missing)

        message = QueuedJoke(setup=setup, punchline=punchline, type=normalize_type(type_name))
        await self.broker.publish(self.moderated_queue, message.model_dump())
        MODERATION_DECISIONS.labels(decision=DecisionStatus.ACCEPTED.value).inc()
        logger.info(f"Moderated joke sent to queue {self.moderated_queue}: type={message.type}")
        return DecisionStatus.ACCEPTED

    def list_cached_types(self) -> List[str]:
        return self.type_cache.snapshot()
