"""
Pydantic Data Transfer Objects (DTOs) shared across the pipeline.

``JokeSubmission`` and ``ModeratedDecision`` are HTTP request bodies; their fields
are optional so the services can answer missing fields with their own 400 message
instead of FastAPI's generic 422. ``QueuedJoke`` and ``TypeUpdateEvent`` are the
JSON payloads that travel over the broker.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, StrictBool, field_validator

from joke_common.utils.timestamps import now_ms

# Taxonomy every Type Cache starts from and every empty Store is seeded with.
DEFAULT_TYPES = ("general", "programming", "dad")

REQUIRED_JOKE_FIELDS = ("setup", "punchline", "type")


def normalize_type(name: str) -> str:
    """Type names are compared and stored lower-cased everywhere."""
    return name.lower()


class JokeSubmission(BaseModel):
    """
    Request body for ``POST /submit``.
    """
    setup: Optional[str] = None
    punchline: Optional[str] = None
    type: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_JOKE_FIELDS if not getattr(self, name)]


class ModeratedDecision(JokeSubmission):
    """
    Request body for ``POST /moderated``.

    Only the JSON literal ``true`` counts as approval. Strings such as "yes" or
    "true", numbers and every other value are a rejection.
    """
    approved: Optional[StrictBool] = None

    @field_validator("approved", mode="before")
    @classmethod
    def non_boolean_is_rejection(cls, v: Any) -> Optional[bool]:
        if v is None or isinstance(v, bool):
            return v
        return False


class QueuedJoke(BaseModel):
    """
    Payload of the SUBMITTED and MODERATED queues.

    ``timestamp`` is epoch milliseconds set by the publisher.
    """
    setup: str = Field(..., min_length=1)
    punchline: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    timestamp: int = Field(default_factory=now_ms)


class TypeUpdateEvent(BaseModel):
    """
    Broadcast payload on the ``type_update`` fanout exchange.

    Always carries the full taxonomy, never a delta, so applying it twice or out
    of order converges to the same cache.
    """
    types: List[str]
    timestamp: int = Field(default_factory=now_ms)

    @field_validator("types")
    @classmethod
    def drop_duplicates(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class JokeDTO(BaseModel):
    """
    A stored joke as returned by ``sample``; identical shape for both backends.
    """
    type: str
    setup: str
    punchline: str

    model_config = {"from_attributes": True}
