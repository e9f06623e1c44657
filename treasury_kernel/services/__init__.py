"""Kernel services: rate resolution, tax calculation, treasury posting and admin."""

from treasury_kernel.services.rate_resolver import RateResolver
from treasury_kernel.services.tax_calculator import TaxCalculator
from treasury_kernel.services.treasury_poster import TreasuryPoster
from treasury_kernel.services.treasury_service import TreasuryService
from treasury_kernel.services.unit_of_work import (
    JoinedUnitOfWork,
    StandaloneUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "JoinedUnitOfWork",
    "RateResolver",
    "StandaloneUnitOfWork",
    "TaxCalculator",
    "TreasuryPoster",
    "TreasuryService",
    "UnitOfWork",
]
