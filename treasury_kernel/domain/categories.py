"""
TaxCategory -- the closed set of tax families the treasury tracks.

Each category owns exactly one revenue counter on the treasury row (see
``treasury_kernel.models.treasury.REVENUE_COLUMNS``).  Category values are
what gets stored in ``tax_records.type``.
"""

from enum import Enum


class TaxCategory(str, Enum):
    """Tax families posted to a class treasury."""

    ITEM_STORE = "item_store"
    ITEM_MARKET = "item_market"
    STOCK = "stock"
    TRANSACTION = "transaction"
    INCOME = "income"


class IncomeType(str, Enum):
    """Income kinds with a dedicated rate.  Anything else uses the generic income rate."""

    SALARY = "salary"
    REWARD = "reward"
