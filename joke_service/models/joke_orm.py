"""
SQLAlchemy ORM model for the 'jokes' table.
"""
from datetime import datetime

from sqlalchemy import TIMESTAMP, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base


class JokeORM(Base):
    """
    An approved joke. Immutable once inserted.

    Attributes:
        id (int): Primary key, auto-incrementing.
        type_id (int): Foreign key to ``types.id``; a joke always references an existing type.
        setup (str): The joke's setup line.
        punchline (str): The joke's punchline.
        created_at (datetime): Insertion time (defaults to NOW()).
    """
    __tablename__ = "jokes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type_id: Mapped[int] = mapped_column(ForeignKey("types.id"), nullable=False)
    setup: Mapped[str] = mapped_column(Text, nullable=False)
    punchline: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_jokes_type_id", "type_id"),
    )

    def __repr__(self) -> str:
        return f"<JokeORM(id={self.id}, type_id={self.type_id})>"
