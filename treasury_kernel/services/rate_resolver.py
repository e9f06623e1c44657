"""
RateResolver -- per-class tax rates, merged over injected defaults.

Responsibility:
    Reads a class's stored ``TaxSettings`` and overlays them onto the
    default rate set.  Every call re-reads; callers may cache upstream.

Architecture position:
    Kernel > Services -- imperative shell around domain/rates.py.
    Called by TaxCalculator before every tax computation.

Invariants enforced:
    - The returned ``TaxRates`` is always fully populated.
    - A configuration read failure never blocks tax computation.

Failure modes:
    None surface.  Database errors, a non-object ``rates`` document, or any
    invalid stored rate are logged at ERROR and the full defaults are
    returned.
"""

from collections.abc import Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.domain.rates import DEFAULT_TAX_RATES, TaxRates, merge_rates
from treasury_kernel.exceptions import InvalidTaxRateError
from treasury_kernel.logging_config import get_logger
from treasury_kernel.models.tax_settings import TaxSettings

logger = get_logger("services.rate_resolver")


class RateResolver:
    """
    Resolves the effective tax rates for a class.

    Contract:
        ``get_rates(class_code)`` returns stored overrides merged onto
        ``defaults``, or exactly ``defaults`` when the class has no stored
        settings or they cannot be read.

    Non-goals:
        - Does NOT write settings (see TreasuryService.update_tax_settings).
        - Does NOT cache.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        defaults: TaxRates = DEFAULT_TAX_RATES,
    ):
        self._session_factory = session_factory
        self._defaults = defaults

    @property
    def defaults(self) -> TaxRates:
        return self._defaults

    def get_rates(self, class_code: str) -> TaxRates:
        """
        Return the effective rates for ``class_code``.

        Args:
            class_code: Class whose settings to read.

        Returns:
            Fully populated TaxRates.
        """
        try:
            with self._session_factory() as session:
                stored = session.execute(
                    select(TaxSettings.rates).where(
                        TaxSettings.class_code == class_code
                    )
                ).scalar_one_or_none()

            if stored is None:
                logger.debug(
                    "tax_settings_defaulted",
                    extra={"class_code": class_code},
                )
                return self._defaults

            if not isinstance(stored, Mapping):
                raise InvalidTaxRateError("rates", stored)

            return merge_rates(self._defaults, stored)
        except Exception:
            logger.error(
                "tax_settings_read_failed",
                extra={"class_code": class_code},
                exc_info=True,
            )
            return self._defaults
