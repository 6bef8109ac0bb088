"""Default data inserted into an empty Store."""

import logging
from typing import Sequence, Tuple

from joke_common.models.dtos import DEFAULT_TYPES
from joke_service.storage.base_store import JokeStore

logger = logging.getLogger(__name__)

DEFAULT_JOKES: Sequence[Tuple[str, str, str]] = (
    ("general", "Why did the scarecrow win an award?", "Because he was outstanding in his field!"),
    ("general", "Why don't scientists trust atoms?", "Because they make up everything!"),
    ("programming", "Why do programmers prefer dark mode?", "Because light attracts bugs!"),
    ("programming", "What is a programmer's favourite hangout place?", "Foo Bar!"),
    ("dad", "I'm reading a book about anti-gravity.", "It's impossible to put down!"),
    ("dad", "Did you hear about the mathematician who's afraid of negative numbers?", "He'll stop at nothing to avoid them!"),
)


async def seed_if_empty(store: JokeStore) -> int:
    """
    Insert the default types and sample jokes when the store has no jokes.

    Returns:
        Number of jokes inserted (0 when the store already had data).
    """
    if await store.count_jokes() > 0:
        return 0

    logger.info("No jokes found. Inserting sample data.")
    for type_name in DEFAULT_TYPES:
        await store.insert_type(type_name)
    for type_name, setup, punchline in DEFAULT_JOKES:
        await store.insert_joke(type_name, setup, punchline)
    return len(DEFAULT_JOKES)
