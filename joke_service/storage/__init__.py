"""
Persistence backends for jokes and joke types.
"""

from .base_store import ANY_TYPE, JokeStore
from .document_store import MongoJokeStore
from .factory import create_store
from .relational_store import SQLAlchemyJokeStore
from .seed import DEFAULT_JOKES, seed_if_empty

__all__ = [
    "ANY_TYPE",
    "DEFAULT_JOKES",
    "JokeStore",
    "MongoJokeStore",
    "SQLAlchemyJokeStore",
    "create_store",
    "seed_if_empty",
]
