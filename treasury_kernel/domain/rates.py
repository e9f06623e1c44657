"""
Tax rates -- the immutable per-class rate set and its merge rules.

Responsibility:
    Defines ``TaxRates`` (the fully populated rate set), the built-in
    ``DEFAULT_TAX_RATES`` constant, rate validation, and the pure
    ``merge_rates(defaults, overrides)`` function used by the rate resolver
    and the settings editor.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A ``TaxRates`` instance always has every rate populated.
    - Every rate is a ``Decimal`` in [0, 1].
    - Stored documents use the camelCase wire names in ``RATE_FIELDS``;
      Python code uses the snake_case attribute names.

Failure modes:
    - InvalidTaxRateError for a non-numeric, non-finite or out-of-range rate.
    - UnknownTaxRateError for an unknown rate name when merging strictly.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from treasury_kernel.exceptions import InvalidTaxRateError, UnknownTaxRateError

# Wire name (stored settings document) -> TaxRates attribute
RATE_FIELDS: dict[str, str] = {
    "stockTransactionTaxRate": "stock_transaction",
    "realEstateTransactionTaxRate": "real_estate_transaction",
    "itemStoreVATRate": "item_store_vat",
    "auctionTransactionTaxRate": "auction_transaction",
    "propertyHoldingTaxRate": "property_holding",
    "itemMarketTransactionTaxRate": "item_market_transaction",
    "incomeTaxRate": "income",
    "transactionTaxRate": "transaction",
    "salaryTaxRate": "salary",
    "rewardTaxRate": "reward",
}

_ATTR_TO_WIRE: dict[str, str] = {attr: wire for wire, attr in RATE_FIELDS.items()}


@dataclass(frozen=True)
class TaxRates:
    """Fully populated set of fractional tax rates for one class."""

    stock_transaction: Decimal
    real_estate_transaction: Decimal
    item_store_vat: Decimal
    auction_transaction: Decimal
    property_holding: Decimal
    item_market_transaction: Decimal
    income: Decimal
    transaction: Decimal
    salary: Decimal
    reward: Decimal

    def to_dict(self) -> dict[str, Decimal]:
        """Return the rates keyed by wire name."""
        return {
            _ATTR_TO_WIRE[f.name]: getattr(self, f.name) for f in fields(self)
        }


DEFAULT_TAX_RATES = TaxRates(
    stock_transaction=Decimal("0.01"),
    real_estate_transaction=Decimal("0.03"),
    item_store_vat=Decimal("0.1"),
    auction_transaction=Decimal("0.03"),
    property_holding=Decimal("0.002"),
    item_market_transaction=Decimal("0.03"),
    income=Decimal("0.15"),
    transaction=Decimal("0.005"),
    salary=Decimal("0.1"),
    reward=Decimal("0.05"),
)


def parse_rate(name: str, value: Any) -> Decimal:
    """
    Validate one rate value and return it as a Decimal.

    Floats go through ``str()`` so that 0.29 becomes Decimal("0.29") rather
    than its binary approximation.

    Raises:
        InvalidTaxRateError: not a finite number in [0, 1].
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidTaxRateError(name, value)
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise InvalidTaxRateError(name, value) from None
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise InvalidTaxRateError(name, value)
    return rate


def merge_rates(
    defaults: TaxRates,
    overrides: Mapping[str, Any] | None,
    *,
    strict: bool = False,
) -> TaxRates:
    """
    Overlay stored rate values (by wire name) onto a default rate set.

    Pure function: ``defaults`` is not modified.  Keys that are not rate
    names are ignored, or rejected when ``strict`` is set (settings edits).

    Raises:
        InvalidTaxRateError: an overriding value is not a valid rate.
        UnknownTaxRateError: ``strict`` and a key is not a rate name.
    """
    if not overrides:
        return defaults

    changes: dict[str, Decimal] = {}
    for wire_name, value in overrides.items():
        attr = RATE_FIELDS.get(wire_name)
        if attr is None:
            if strict:
                raise UnknownTaxRateError(wire_name)
            continue
        changes[attr] = parse_rate(wire_name, value)

    return replace(defaults, **changes)
