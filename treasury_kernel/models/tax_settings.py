"""
Module: treasury_kernel.models.tax_settings
Responsibility: ORM persistence for per-class tax rate overrides.
Architecture position: Kernel > Models.  May import from db/base.py only.

The ``rates`` column holds a JSON object keyed by wire rate name
(e.g. ``{"incomeTaxRate": 0.2}``).  It may be partial; readers overlay it
onto the built-in defaults.  Values are not trusted on read -- the rate
resolver validates them and falls back to defaults if any is malformed.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from treasury_kernel.db.base import Base


class TaxSettings(Base):
    """Stored tax rate overrides for one class."""

    __tablename__ = "tax_settings"

    class_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )

    rates: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TaxSettings {self.class_code}>"
