"""
SQLAlchemy ORM models for the relational Store backend.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from .base import Base
from .joke_orm import JokeORM
from .type_orm import TypeORM

__all__ = [
    "Base",
    "JokeORM",
    "TypeORM",
]
