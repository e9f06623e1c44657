"""
TreasurySelector -- read-only views over treasuries and tax records.

Responsibility:
    Treasury summaries, tax record history, and the ledger consistency
    check (total equals the sum of category revenue counters).

Architecture position:
    Kernel > Selectors.  Read-only; the caller owns the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select

from treasury_kernel.domain.categories import TaxCategory
from treasury_kernel.models.tax_record import TaxRecord
from treasury_kernel.models.treasury import REVENUE_COLUMNS, Treasury
from treasury_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class TreasurySummary:
    """Point-in-time balance of one class treasury."""

    class_code: str
    total_amount: int
    revenue: dict[TaxCategory, int]
    last_updated: datetime | None
    created_at: datetime | None


@dataclass(frozen=True)
class TaxRecordView:
    """One row of the tax record log."""

    id: UUID
    class_code: str
    category: TaxCategory
    amount: int
    description: str
    timestamp: datetime | None


@dataclass(frozen=True)
class LedgerCheck:
    """Result of comparing a treasury total with its revenue counters."""

    class_code: str
    total_amount: int
    revenue_sum: int

    @property
    def difference(self) -> int:
        return self.total_amount - self.revenue_sum

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0


class TreasurySelector(BaseSelector):
    """Queries over class treasuries and their tax records."""

    def _load(self, class_code: str) -> Treasury | None:
        # populate_existing: other sessions may have incremented the row
        return self.session.execute(
            select(Treasury)
            .where(Treasury.class_code == class_code)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_summary(self, class_code: str) -> TreasurySummary | None:
        """Return the treasury balance, or None if the class has none."""
        treasury = self._load(class_code)
        if treasury is None:
            return None

        return TreasurySummary(
            class_code=treasury.class_code,
            total_amount=treasury.total_amount,
            revenue={
                category: getattr(treasury, column.key)
                for category, column in REVENUE_COLUMNS.items()
            },
            last_updated=treasury.last_updated,
            created_at=treasury.created_at,
        )

    def list_tax_records(
        self,
        class_code: str,
        category: TaxCategory | str | None = None,
        limit: int | None = None,
    ) -> list[TaxRecordView]:
        """Return a class's tax records, newest first, optionally filtered."""
        stmt = select(TaxRecord).where(TaxRecord.class_code == class_code)
        if category is not None:
            stmt = stmt.where(TaxRecord.type == TaxCategory(category).value)
        # id breaks ties between records sharing a timestamp
        stmt = stmt.order_by(TaxRecord.timestamp.desc(), TaxRecord.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        return [
            TaxRecordView(
                id=record.id,
                class_code=record.class_code,
                category=TaxCategory(record.type),
                amount=record.amount,
                description=record.description,
                timestamp=record.timestamp,
            )
            for record in self.session.execute(stmt).scalars()
        ]

    def total_recorded(self, class_code: str) -> int:
        """Sum of all standalone tax records for a class."""
        return self.session.execute(
            select(func.coalesce(func.sum(TaxRecord.amount), 0)).where(
                TaxRecord.class_code == class_code
            )
        ).scalar_one()

    def verify_ledger(self, class_code: str) -> LedgerCheck | None:
        """Compare total_amount with the sum of revenue counters."""
        summary = self.get_summary(class_code)
        if summary is None:
            return None

        return LedgerCheck(
            class_code=class_code,
            total_amount=summary.total_amount,
            revenue_sum=sum(summary.revenue.values()),
        )
