"""
SQLAlchemy ORM model for the 'types' table.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TypeORM(Base):
    """
    A joke type. ``name`` is stored lower-cased and is unique; the unique
    constraint is what resolves concurrent creation of the same type.
    """
    __tablename__ = "types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, comment="Lower-cased type name.")

    def __repr__(self) -> str:
        return f"<TypeORM(id={self.id}, name='{self.name}')>"
