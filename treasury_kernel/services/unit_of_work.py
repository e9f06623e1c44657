"""
Units of work for treasury postings.

Responsibility:
    Encapsulates the two ways a tax amount reaches the treasury:

    - ``StandaloneUnitOfWork`` opens its own transaction, increments the
      treasury and appends a ``TaxRecord``, and commits both together.
    - ``JoinedUnitOfWork`` increments the treasury on a caller-owned
      session, inside a savepoint.  It never commits and never writes a
      ``TaxRecord``; the caller's commit or rollback decides whether the
      increment lands.  A failed increment rolls back only its savepoint,
      so the caller's earlier work in the transaction survives.

Architecture position:
    Kernel > Services -- used only by TreasuryPoster.

Invariants enforced:
    - The treasury is changed by one ``UPDATE ... SET col = col + :amount``
      statement touching total_amount, one revenue counter and
      last_updated.  Concurrent increments are never lost.
    - Standalone: increment and record are atomic (both or neither).

Failure modes:
    - TreasuryNotFoundError when no treasury row matches the class code.
    - UnknownTaxCategoryError when the category has no revenue counter.
    - Any SQLAlchemyError from the statement or commit.  In the standalone
      path the transaction is rolled back before the error propagates; in
      the joined path only the savepoint is.
"""

from abc import ABC, abstractmethod

from sqlalchemy import func, update
from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.domain.categories import TaxCategory
from treasury_kernel.exceptions import TreasuryNotFoundError, UnknownTaxCategoryError
from treasury_kernel.models.tax_record import TaxRecord
from treasury_kernel.models.treasury import REVENUE_COLUMNS, Treasury


def increment_treasury(
    session: Session,
    class_code: str,
    category: TaxCategory,
    amount: int,
) -> None:
    """
    Atomically add ``amount`` to a treasury's total and category counter.

    Raises:
        UnknownTaxCategoryError: category has no revenue counter.
        TreasuryNotFoundError: no treasury row for ``class_code``.
    """
    revenue = REVENUE_COLUMNS.get(category)
    if revenue is None:
        raise UnknownTaxCategoryError(category)

    result = session.execute(
        update(Treasury)
        .where(Treasury.class_code == class_code)
        .values(
            {
                Treasury.total_amount: Treasury.total_amount + amount,
                revenue: revenue + amount,
                Treasury.last_updated: func.now(),
            }
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise TreasuryNotFoundError(class_code)


class UnitOfWork(ABC):
    """A scope in which one treasury posting is applied."""

    #: Short label for logs ("standalone" / "joined").
    mode: str = ""

    #: Whether postings in this scope append a TaxRecord.
    writes_tax_record: bool = False

    @abstractmethod
    def apply(
        self,
        class_code: str,
        category: TaxCategory,
        amount: int,
        description: str,
    ) -> None:
        """Apply one posting.  Raises on failure."""
        ...


class StandaloneUnitOfWork(UnitOfWork):
    """Own transaction: increment + tax record, committed together."""

    mode = "standalone"
    writes_tax_record = True

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def apply(
        self,
        class_code: str,
        category: TaxCategory,
        amount: int,
        description: str,
    ) -> None:
        # begin() commits on exit and rolls back if anything raises,
        # including a failure while flushing the record at commit time.
        with self._session_factory.begin() as session:
            increment_treasury(session, class_code, category, amount)
            session.add(
                TaxRecord(
                    class_code=class_code,
                    type=category.value,
                    amount=amount,
                    description=description,
                )
            )


class JoinedUnitOfWork(UnitOfWork):
    """Caller's transaction: increment only, no commit, no tax record."""

    mode = "joined"
    writes_tax_record = False

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def apply(
        self,
        class_code: str,
        category: TaxCategory,
        amount: int,
        description: str,
    ) -> None:
        # Savepoint: a failed increment must not abort the caller's transaction
        savepoint = self._session.begin_nested()
        try:
            increment_treasury(self._session, class_code, category, amount)
            savepoint.commit()
        except Exception:
            savepoint.rollback()
            raise

        # The bulk UPDATE bypasses the identity map; make a Treasury the
        # caller already loaded reload its counters on next access.
        for obj in list(self._session.identity_map.values()):
            # __dict__ lookup avoids a refresh SELECT on already-expired rows
            if isinstance(obj, Treasury) and obj.__dict__.get("class_code") == class_code:
                self._session.expire(obj)
