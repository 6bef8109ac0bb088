"""
Wire-level DTOs exchanged between the pipeline services.
"""

from .dtos import (
    DEFAULT_TYPES,
    JokeDTO,
    JokeSubmission,
    ModeratedDecision,
    QueuedJoke,
    TypeUpdateEvent,
    normalize_type,
)

__all__ = [
    "DEFAULT_TYPES",
    "JokeDTO",
    "JokeSubmission",
    "ModeratedDecision",
    "QueuedJoke",
    "TypeUpdateEvent",
    "normalize_type",
]
