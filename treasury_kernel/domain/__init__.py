"""Pure domain core: tax categories, rate sets, and tax arithmetic."""

from treasury_kernel.domain.categories import IncomeType, TaxCategory
from treasury_kernel.domain.rates import (
    DEFAULT_TAX_RATES,
    RATE_FIELDS,
    TaxRates,
    merge_rates,
    parse_rate,
)
from treasury_kernel.domain.tax_math import IncomeTaxResult, TaxResult, compute_tax

__all__ = [
    "DEFAULT_TAX_RATES",
    "RATE_FIELDS",
    "IncomeTaxResult",
    "IncomeType",
    "TaxCategory",
    "TaxRates",
    "TaxResult",
    "compute_tax",
    "merge_rates",
    "parse_rate",
]
