"""
TreasuryService -- provisioning treasuries and editing tax settings.

Responsibility:
    Administrative writes the tax path depends on: creating a class's
    treasury row and maintaining its stored tax rate overrides.

Architecture position:
    Kernel > Services -- flush-only, runs in the caller's transaction.

Invariants enforced:
    - open_treasury is idempotent per class code.
    - Stored rates are validated before they are written; the tax path
      never sees a rate written through this service that is out of range.

Failure modes:
    - InvalidTaxRateError / UnknownTaxRateError on bad settings input.
      Unlike the tax path, these propagate: they are operator errors.
    - Two transactions opening the same class at once: the losing insert
      rolls back to its savepoint and the winner's row is returned.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from treasury_kernel.domain.rates import DEFAULT_TAX_RATES, TaxRates, merge_rates
from treasury_kernel.logging_config import get_logger
from treasury_kernel.models.tax_settings import TaxSettings
from treasury_kernel.models.treasury import Treasury
from treasury_kernel.services.base import BaseService

logger = get_logger("services.treasury")


class TreasuryService(BaseService):
    """
    Administrative operations on class treasuries and tax settings.

    Non-goals:
        - Does NOT post tax (see TreasuryPoster).
        - Does NOT commit.
    """

    def __init__(self, session: Session, defaults: TaxRates = DEFAULT_TAX_RATES):
        super().__init__(session)
        self._defaults = defaults

    def open_treasury(self, class_code: str) -> Treasury:
        """
        Return the class's treasury, creating a zeroed one if missing.

        Postconditions:
            A flushed Treasury row exists for ``class_code``.
        """
        treasury = self._find(class_code)
        if treasury is not None:
            return treasury

        # Savepoint: losing an insert race must not abort the caller's transaction
        savepoint = self.session.begin_nested()
        try:
            treasury = Treasury(
                class_code=class_code,
                total_amount=0,
                item_store_revenue=0,
                item_market_revenue=0,
                stock_revenue=0,
                transaction_revenue=0,
                income_revenue=0,
            )
            self.session.add(treasury)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            logger.debug("treasury_open_race_retry", extra={"class_code": class_code})
            savepoint.rollback()
            return self._find(class_code)

        logger.info("treasury_opened", extra={"class_code": class_code})
        return treasury

    def _find(self, class_code: str) -> Treasury | None:
        return self.session.execute(
            select(Treasury).where(Treasury.class_code == class_code)
        ).scalar_one_or_none()

    def update_tax_settings(
        self, class_code: str, rates: Mapping[str, Any]
    ) -> TaxRates:
        """
        Validate and store rate overrides for a class.

        Keys are wire rate names (e.g. ``incomeTaxRate``).  Previously
        stored overrides not named in ``rates`` are kept.

        Returns:
            The effective rates after the update.

        Raises:
            UnknownTaxRateError: a key is not a rate name.
            InvalidTaxRateError: a value is not a number in [0, 1].
        """
        validated = merge_rates(self._defaults, rates, strict=True).to_dict()
        new_values = {name: float(validated[name]) for name in rates}

        settings = self.session.execute(
            select(TaxSettings).where(TaxSettings.class_code == class_code)
        ).scalar_one_or_none()

        if settings is None:
            settings = TaxSettings(class_code=class_code, rates=new_values)
            self.session.add(settings)
        else:
            # Reassign so the JSON column registers the change
            settings.rates = {**(settings.rates or {}), **new_values}

        self.session.flush()
        logger.info(
            "tax_settings_updated",
            extra={"class_code": class_code, "rates": new_values},
        )
        return merge_rates(self._defaults, settings.rates)

    def reset_tax_settings(self, class_code: str) -> bool:
        """
        Drop a class's stored overrides so it falls back to defaults.

        Returns:
            True if settings existed and were removed.
        """
        settings = self.session.execute(
            select(TaxSettings).where(TaxSettings.class_code == class_code)
        ).scalar_one_or_none()
        if settings is None:
            return False

        self.session.delete(settings)
        self.session.flush()
        logger.info("tax_settings_reset", extra={"class_code": class_code})
        return True
