"""
Submission Gateway.

Validates joke proposals and publishes them to the SUBMITTED queue. Publishing is
fire-and-forget relative to moderation: success means the broker took the
message, nothing more.
"""
import logging
from typing import List, Optional

from joke_common.errors import ValidationError
from joke_common.messaging.connection import BrokerConnection
from joke_common.models.dtos import JokeSubmission, QueuedJoke, normalize_type
from joke_common.monitoring.metrics import JOKES_SUBMITTED
from joke_common.type_cache import TypeCache

logger = logging.getLogger(__name__)


class SubmissionGateway:
    def __init__(self, broker: BrokerConnection, type_cache: TypeCache, queue_name: str):
        self.broker = broker
        self.type_cache = type_cache
        self.queue_name = queue_name

    async def submit(self, setup: Optional[str], punchline: Optional[str], type_name: Optional[str]) -> QueuedJoke:
        """
        Enqueue one joke proposal.

        Raises:
            ValidationError: If any field is absent or empty. Nothing is published.
            BrokerUnavailable: If there is no live channel.
        """
        missing = JokeSubmission(setup=setup, punchline=punchline, type=type_name).missing_fields()
        if missing:
            raise ValidationError(missing)

        message = QueuedJoke(setup=setup, punchline=punchline, type=normalize_type(type_name))
        await self.broker.publish(self.queue_name, message.model_dump())
        JOKES_SUBMITTED.inc()
        logger.info(f"Joke submitted to queue {self.queue_name}: type={message.type}")
        return message

    def list_cached_types(self) -> List[str]:
        """Current Type Cache snapshot. Never queries the Store."""
        return self.type_cache.snapshot()
