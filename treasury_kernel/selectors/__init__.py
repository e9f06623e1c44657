"""Read-only query selectors."""

from treasury_kernel.selectors.treasury_selector import (
    LedgerCheck,
    TaxRecordView,
    TreasurySelector,
    TreasurySummary,
)

__all__ = [
    "LedgerCheck",
    "TaxRecordView",
    "TreasurySelector",
    "TreasurySummary",
]
