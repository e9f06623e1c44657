"""
Module: treasury_kernel.db.base
Responsibility: Declarative base shared by every ORM model.
Architecture position: Kernel > DB.  Imported by models/; imports nothing
    from the kernel itself.

Conventions:
    - Primary keys are uuid4 values, stored as 36-character strings so the
      same schema works on SQLite and PostgreSQL.
    - Classroom currency has no minor units: ``Mapped[int]`` columns are
      BigInteger and every amount is a whole number.
    - ``Mapped[datetime]`` columns are timezone-aware.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """Python ``UUID`` on the ORM side, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Declarative base: uuid ``id`` column plus the annotation type map."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )
