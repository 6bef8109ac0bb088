"""Defines the JokeStore protocol shared by both persistence backends."""

from typing import List, Protocol

from joke_common.models.dtos import JokeDTO

ANY_TYPE = "any"


class JokeStore(Protocol):
    """
    A protocol that defines the interface for the joke persistence backends.

    This ensures the document store and the relational store can be used
    interchangeably by the ETL worker and the joke API. Which one is used is
    decided once, at startup, by ``create_store``.
    """

    backend_name: str

    async def initialize(self) -> None:
        """Open connection pools and create the schema or indexes. Called once at startup."""
        ...

    async def close(self) -> None:
        ...

    async def ping(self) -> bool:
        """True when the backend answers a trivial query."""
        ...

    async def insert_type(self, name: str) -> bool:
        """
        Insert-or-ignore a type.

        Returns:
            True only if this call created the record. Concurrent duplicates are
            resolved by the backend's uniqueness constraint.
        """
        ...

    async def insert_joke(self, type_name: str, setup: str, punchline: str) -> None:
        """Insert a joke for an existing type. Raises StoreError if the type is unknown."""
        ...

    async def insert_joke_with_type(self, type_name: str, setup: str, punchline: str) -> bool:
        """
        Upsert the type and insert the joke as one unit.

        Returns:
            True for exactly one successful call per new type: the call whose joke
            insert first completes for it. A failed attempt never consumes the
            "created" result, so a retry of the same message still reports it.
        """
        ...

    async def list_distinct_types(self) -> List[str]:
        """All type names, sorted."""
        ...

    async def count_jokes(self) -> int:
        ...

    async def sample(self, type_name: str, count: int) -> List[JokeDTO]:
        """
        Up to ``count`` random jokes of ``type_name`` (or of any type for ``"any"``),
        sampled server-side. Fewer records than requested is not an error.
        """
        ...
