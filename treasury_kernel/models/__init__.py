"""ORM models for the treasury kernel."""

from treasury_kernel.models.tax_record import TaxRecord
from treasury_kernel.models.tax_settings import TaxSettings
from treasury_kernel.models.treasury import REVENUE_COLUMNS, Treasury

__all__ = [
    "REVENUE_COLUMNS",
    "TaxRecord",
    "TaxSettings",
    "Treasury",
]
