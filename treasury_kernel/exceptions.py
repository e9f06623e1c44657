"""
Typed exception hierarchy for the treasury kernel.

Every error has a typed class and a machine-readable ``code`` class
attribute, and carries its context as attributes instead of only a
message string, so callers catch by type and log structured fields.

    TreasuryKernelError (base)
    |
    +-- ConfigError
    |
    +-- SettingsError
    |   +-- InvalidTaxRateError
    |   +-- UnknownTaxRateError
    |
    +-- TreasuryError
    |   +-- TreasuryNotFoundError
    |
    +-- PostingError
    |   +-- InvalidTaxAmountError
    |   +-- UnknownTaxCategoryError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------
Config          | CONFIG_ERROR                | YAML config malformed
----------------|-----------------------------|-----------------------------------
Settings        | INVALID_TAX_RATE            | Rate not a number in [0, 1]
                | UNKNOWN_TAX_RATE            | Rate name is not a known rate
----------------|-----------------------------|-----------------------------------
Treasury        | TREASURY_NOT_FOUND          | No treasury row for class code
----------------|-----------------------------|-----------------------------------
Posting         | INVALID_TAX_AMOUNT          | Posting amount not a positive int
                | UNKNOWN_TAX_CATEGORY        | Category has no revenue counter
----------------|-----------------------------|-----------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Update/delete of a tax record

The tax path (RateResolver, TreasuryPoster, TaxCalculator) catches these
at its boundary and degrades to "no tax applied".  Only the administration
service and the config loader let them reach the caller.
"""


class TreasuryKernelError(Exception):
    """
    Base exception for all treasury kernel errors.

    All subclasses must have a `code` class attribute for
    machine-readable error identification.
    """

    code: str = "TREASURY_KERNEL_ERROR"


class ConfigError(TreasuryKernelError):
    """Configuration file content is invalid."""

    code: str = "CONFIG_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")


# Settings-related exceptions


class SettingsError(TreasuryKernelError):
    """Base exception for tax settings errors."""

    code: str = "SETTINGS_ERROR"


class InvalidTaxRateError(SettingsError):
    """A tax rate is not a number between 0 and 1."""

    code: str = "INVALID_TAX_RATE"

    def __init__(self, rate_name: str, value: object):
        self.rate_name = rate_name
        self.value = value
        super().__init__(
            f"Invalid tax rate {rate_name}={value!r}: must be a number in [0, 1]"
        )


class UnknownTaxRateError(SettingsError):
    """A rate name is not one of the known tax rates."""

    code: str = "UNKNOWN_TAX_RATE"

    def __init__(self, rate_name: str):
        self.rate_name = rate_name
        super().__init__(f"Unknown tax rate: {rate_name}")


# Treasury-related exceptions


class TreasuryError(TreasuryKernelError):
    """Base exception for treasury errors."""

    code: str = "TREASURY_ERROR"


class TreasuryNotFoundError(TreasuryError):
    """No treasury exists for the class code."""

    code: str = "TREASURY_NOT_FOUND"

    def __init__(self, class_code: str):
        self.class_code = class_code
        super().__init__(f"Treasury not found for class: {class_code}")


# Posting-related exceptions


class PostingError(TreasuryKernelError):
    """Base exception for treasury posting errors."""

    code: str = "POSTING_ERROR"


class InvalidTaxAmountError(PostingError):
    """Posting amount is not a positive whole number."""

    code: str = "INVALID_TAX_AMOUNT"

    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"Tax amount must be a positive integer, got {amount!r}")


class UnknownTaxCategoryError(PostingError):
    """Tax category has no revenue counter."""

    code: str = "UNKNOWN_TAX_CATEGORY"

    def __init__(self, category: object):
        self.category = category
        super().__init__(f"Unknown tax category: {category!r}")


# Immutability exceptions


class ImmutabilityError(TreasuryKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
