"""
Tax arithmetic and result value objects.

All amounts are whole currency units.  Tax is ``floor(amount * rate)``
computed in Decimal, so the split is exact: ``tax + net == amount``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from numbers import Integral


def compute_tax(amount: int, rate: Decimal) -> tuple[int, int]:
    """
    Split ``amount`` into ``(tax, net)`` at ``rate``.

    Raises:
        ValueError: amount is not a non-negative integer.
    """
    if isinstance(amount, bool) or not isinstance(amount, Integral) or amount < 0:
        raise ValueError(f"amount must be a non-negative integer, got {amount!r}")
    tax = int((Decimal(int(amount)) * rate).to_integral_value(rounding=ROUND_FLOOR))
    return tax, int(amount) - tax


@dataclass(frozen=True)
class TaxResult:
    """Outcome of a transaction-style tax (item, stock, transfer)."""

    original_amount: int
    tax_amount: int
    net_amount: int

    @classmethod
    def untaxed(cls, amount: int) -> TaxResult:
        return cls(original_amount=amount, tax_amount=0, net_amount=amount)

    def to_dict(self) -> dict[str, int]:
        return {
            "originalAmount": self.original_amount,
            "taxAmount": self.tax_amount,
            "netAmount": self.net_amount,
        }


@dataclass(frozen=True)
class IncomeTaxResult:
    """Outcome of an income-style tax (salary, reward, other income)."""

    gross_income: int
    tax_amount: int
    net_income: int

    @classmethod
    def untaxed(cls, income: int) -> IncomeTaxResult:
        return cls(gross_income=income, tax_amount=0, net_income=income)

    def to_dict(self) -> dict[str, int]:
        return {
            "grossIncome": self.gross_income,
            "taxAmount": self.tax_amount,
            "netIncome": self.net_income,
        }
