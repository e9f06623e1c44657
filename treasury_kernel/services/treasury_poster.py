"""
TreasuryPoster -- availability-first posting of tax into a class treasury.

Responsibility:
    Validates a posting, picks the unit of work (standalone or joined) and
    applies it.  Converts every failure into a logged ``False``.

Architecture position:
    Kernel > Services.  Called by TaxCalculator once a positive tax amount
    has been computed.

Invariants enforced:
    - Never raises: returns True when the posting was applied (standalone)
      or executed on the caller's transaction (joined), False otherwise.
    - Standalone postings are atomic: treasury increment and tax record
      both commit or neither does.

Failure modes (all returned as False and logged at ERROR):
    - InvalidTaxAmountError for a non-positive or non-integer amount.
    - UnknownTaxCategoryError for an unknown category.
    - TreasuryNotFoundError when the class has no treasury.
    - Database errors (permissions, connectivity, lock timeouts).

Not exactly-once: a retry after a False re-applies the full increment,
including after a commit that succeeded but whose result was lost.
"""

from numbers import Integral

from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.domain.categories import TaxCategory
from treasury_kernel.exceptions import InvalidTaxAmountError, UnknownTaxCategoryError
from treasury_kernel.logging_config import get_logger
from treasury_kernel.services.unit_of_work import (
    JoinedUnitOfWork,
    StandaloneUnitOfWork,
    UnitOfWork,
)

logger = get_logger("services.treasury_poster")


class TreasuryPoster:
    """
    Posts tax amounts into class treasuries.

    Contract:
        ``post()`` with no unit of work runs standalone (own transaction plus
        a tax record).  Passing a ``Session`` joins that session's
        transaction; passing a ``UnitOfWork`` uses it as-is.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def unit_of_work_for(self, unit_of_work: UnitOfWork | Session | None) -> UnitOfWork:
        """Select the unit of work for a posting."""
        if unit_of_work is None:
            return StandaloneUnitOfWork(self._session_factory)
        if isinstance(unit_of_work, UnitOfWork):
            return unit_of_work
        if isinstance(unit_of_work, Session):
            return JoinedUnitOfWork(unit_of_work)
        raise TypeError(
            f"unit_of_work must be a Session or UnitOfWork, got {type(unit_of_work).__name__}"
        )

    def post(
        self,
        class_code: str,
        category: TaxCategory | str,
        amount: int,
        description: str,
        unit_of_work: UnitOfWork | Session | None = None,
    ) -> bool:
        """
        Add ``amount`` to the class treasury under ``category``.

        Args:
            class_code: Class whose treasury receives the tax.
            category: Tax category (enum member or its value).
            amount: Positive whole-unit tax amount.
            description: Free text stored on the tax record (standalone only).
            unit_of_work: None, a caller Session, or a UnitOfWork.

        Returns:
            True if applied, False on any failure.
        """
        mode = None
        try:
            try:
                category = TaxCategory(category)
            except ValueError:
                raise UnknownTaxCategoryError(category) from None
            if isinstance(amount, bool) or not isinstance(amount, Integral) or amount <= 0:
                raise InvalidTaxAmountError(amount)

            uow = self.unit_of_work_for(unit_of_work)
            mode = uow.mode
            uow.apply(class_code, category, int(amount), description)
        except Exception:
            logger.error(
                "treasury_posting_failed",
                extra={
                    "class_code": class_code,
                    "category": str(getattr(category, "value", category)),
                    "amount": amount,
                    "mode": mode,
                },
                exc_info=True,
            )
            return False

        logger.info(
            "tax_posted",
            extra={
                "class_code": class_code,
                "category": category.value,
                "amount": int(amount),
                "mode": mode,
            },
        )
        return True
