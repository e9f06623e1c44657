"""
Module: treasury_kernel.models.treasury
Responsibility: ORM persistence for the per-class treasury balance.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - One treasury row per class code (unique constraint).
    - total_amount == sum of the revenue counters, because the only writer
      (TreasuryPoster) increments total_amount and exactly one counter by the
      same amount in one UPDATE statement.
    - Counters are only ever incremented via ``col = col + :amount``; no
      read-modify-write.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func, text
from sqlalchemy.orm import InstrumentedAttribute, Mapped, mapped_column

from treasury_kernel.db.base import Base
from treasury_kernel.domain.categories import TaxCategory


def _counter() -> Mapped[int]:
    return mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        server_default=text("0"),
    )


class Treasury(Base):
    """
    Class-wide pool of collected tax.

    Guarantees:
        - total_amount and every revenue counter start at zero.
        - last_updated is set by the database on every posting.
    """

    __tablename__ = "treasuries"

    class_code: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
    )

    total_amount: Mapped[int] = _counter()

    item_store_revenue: Mapped[int] = _counter()
    item_market_revenue: Mapped[int] = _counter()
    stock_revenue: Mapped[int] = _counter()
    transaction_revenue: Mapped[int] = _counter()
    income_revenue: Mapped[int] = _counter()

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Treasury {self.class_code} total={self.total_amount}>"


# Fixed category -> counter mapping; no column names are built from strings.
REVENUE_COLUMNS: dict[TaxCategory, InstrumentedAttribute[int]] = {
    TaxCategory.ITEM_STORE: Treasury.item_store_revenue,
    TaxCategory.ITEM_MARKET: Treasury.item_market_revenue,
    TaxCategory.STOCK: Treasury.stock_revenue,
    TaxCategory.TRANSACTION: Treasury.transaction_revenue,
    TaxCategory.INCOME: Treasury.income_revenue,
}
