"""
Local replica of the joke type taxonomy (Event-Carried State Transfer).

Each subscribing service keeps its own ``TypeCache``: a list of type names held in
memory and mirrored to a JSON file so it survives restarts without the broker.
It is changed only by ``type_update`` events, each of which fully replaces it.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from joke_common.messaging.handlers import HandlerOutcome
from joke_common.models.dtos import DEFAULT_TYPES, TypeUpdateEvent
from joke_common.monitoring.metrics import TYPE_EVENTS_APPLIED

logger = logging.getLogger(__name__)


class TypeCache:
    def __init__(self, path: Union[str, Path], defaults: Sequence[str] = DEFAULT_TYPES):
        self.path = Path(path)
        self.defaults = list(defaults)
        self._types: List[str] = self.load()

    def load(self) -> List[str]:
        """
        Read the cache file, bootstrapping it with the defaults on first run.

        An unreadable or malformed file is replaced by the defaults so the file
        always holds either the last applied event or the bootstrap set.
        """
        if self.path.exists():
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, list) and all(isinstance(item, str) for item in data):
                    logger.info(f"Loaded {len(data)} cached types from {self.path}")
                    return data
                logger.error(f"Types cache at {self.path} is not a list of strings. Restoring defaults.")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error reading types cache {self.path}: {e}. Restoring defaults.")
        else:
            logger.info(f"No types cache at {self.path}. Bootstrapping with defaults {self.defaults}")
        self._write(self.defaults)
        return list(self.defaults)

    def snapshot(self) -> List[str]:
        return list(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def replace(self, types: Iterable[str]) -> bool:
        """
        Swap the whole cache for ``types``, on disk and then in memory.

        Returns:
            False if the file could not be written. Memory is left unchanged so
            it never disagrees with what a restart would load.
        """
        new_types = list(types)
        if not self._write(new_types):
            return False
        self._types = new_types
        logger.info(f"Types cache updated: {new_types}")
        return True

    def _write(self, types: List[str]) -> bool:
        # Write to a temp file in the same directory then rename, so a crash
        # mid-write never leaves a truncated cache behind.
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".types-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(types, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing types cache {self.path}: {e}")
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
            return False
        return True

    async def apply_event(self, body: bytes) -> HandlerOutcome:
        """
        Message handler for the private ``type_update`` queue.

        Malformed events are logged and acknowledged (dropped); they never stop the consumer.
        An event that cannot be persisted is requeued.
        """
        try:
            event = TypeUpdateEvent.model_validate_json(body)
        except PydanticValidationError as e:
            logger.warning(f"Dropping malformed type_update event: {e}")
            TYPE_EVENTS_APPLIED.labels(outcome="dropped").inc()
            return HandlerOutcome.ack()

        logger.info(f"Received type_update event with {len(event.types)} types (timestamp={event.timestamp})")
        if not self.replace(event.types):
            TYPE_EVENTS_APPLIED.labels(outcome="requeued").inc()
            return HandlerOutcome.nack_requeue()
        TYPE_EVENTS_APPLIED.labels(outcome="applied").inc()
        return HandlerOutcome.ack()
