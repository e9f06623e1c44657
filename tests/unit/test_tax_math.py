"""
Unit tests for tax arithmetic and result objects.

Verifies:
- floor rounding on fractional tax
- exact decimal arithmetic (no binary float drift)
- tax + net == amount
- invalid amounts rejected
"""

from decimal import Decimal
from fractions import Fraction
from math import floor

import pytest
from hypothesis import given
from hypothesis import strategies as st

from treasury_kernel.domain.rates import DEFAULT_TAX_RATES
from treasury_kernel.domain.tax_math import IncomeTaxResult, TaxResult, compute_tax


class TestComputeTax:

    def test_fraction_floors(self):
        assert compute_tax(999, Decimal("0.1")) == (99, 900)

    def test_whole_tax(self):
        assert compute_tax(50000, DEFAULT_TAX_RATES.salary) == (5000, 45000)

    def test_one_percent_of_hundred(self):
        assert compute_tax(100, DEFAULT_TAX_RATES.stock_transaction) == (1, 99)

    def test_small_amount_rounds_to_zero(self):
        assert compute_tax(50, DEFAULT_TAX_RATES.transaction) == (0, 50)

    def test_decimal_rate_is_exact(self):
        """100 * 0.29 is 28.999... in binary floats; the tax must still be 29."""
        assert compute_tax(100, Decimal("0.29")) == (29, 71)

    def test_zero_amount(self):
        assert compute_tax(0, Decimal("0.5")) == (0, 0)

    def test_full_rate(self):
        assert compute_tax(1234, Decimal("1")) == (1234, 0)

    def test_zero_rate(self):
        assert compute_tax(1234, Decimal("0")) == (0, 1234)

    @pytest.mark.parametrize("amount", [-1, 10.5, "100", True, None])
    def test_invalid_amount_rejected(self, amount):
        with pytest.raises(ValueError):
            compute_tax(amount, Decimal("0.1"))

    @given(
        amount=st.integers(min_value=0, max_value=10**12),
        rate=st.decimals(min_value=0, max_value=1, places=4),
    )
    def test_floor_and_conservation(self, amount, rate):
        tax, net = compute_tax(amount, rate)
        assert tax == floor(Fraction(amount) * Fraction(rate))
        assert tax + net == amount
        assert 0 <= tax <= amount


class TestResults:

    def test_tax_result_wire_names(self):
        result = TaxResult(original_amount=999, tax_amount=99, net_amount=900)
        assert result.to_dict() == {
            "originalAmount": 999,
            "taxAmount": 99,
            "netAmount": 900,
        }

    def test_income_result_wire_names(self):
        result = IncomeTaxResult(gross_income=50000, tax_amount=5000, net_income=45000)
        assert result.to_dict() == {
            "grossIncome": 50000,
            "taxAmount": 5000,
            "netIncome": 45000,
        }

    def test_untaxed(self):
        assert TaxResult.untaxed(70) == TaxResult(70, 0, 70)
        assert IncomeTaxResult.untaxed(70) == IncomeTaxResult(70, 0, 70)

    def test_results_are_frozen(self):
        result = TaxResult.untaxed(10)
        with pytest.raises(AttributeError):
            result.tax_amount = 5
