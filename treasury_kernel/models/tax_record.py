"""
Module: treasury_kernel.models.tax_record
Responsibility: ORM persistence for the append-only tax record log.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - One row per standalone treasury posting, written in the same
      transaction as the treasury increment.
    - Append-only: UPDATE/DELETE blocked by db/immutability.py listeners.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from treasury_kernel.db.base import Base


class TaxRecord(Base):
    """One standalone tax posting into a class treasury."""

    __tablename__ = "tax_records"

    __table_args__ = (
        Index("idx_tax_record_class", "class_code", "timestamp"),
        Index("idx_tax_record_type", "type"),
    )

    class_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    # Stored as the category value (e.g. "item_store")
    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    # Set client-side: SQLite's CURRENT_TIMESTAMP has one-second resolution
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TaxRecord {self.class_code} {self.type} {self.amount}>"
