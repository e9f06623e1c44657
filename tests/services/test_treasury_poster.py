"""
Tests for TreasuryPoster and the two units of work.

Verifies:
- standalone postings increment total + category and append one tax record
- standalone postings are atomic (record failure leaves the treasury alone)
- joined postings ride the caller's transaction and write no record
- a failed joined posting leaves the caller's earlier work committable
- every failure is reported as False, never raised
"""

import pytest
from sqlalchemy import event, func, select

from treasury_kernel.domain.categories import TaxCategory
from treasury_kernel.models.tax_record import TaxRecord
from treasury_kernel.models.treasury import Treasury
from treasury_kernel.services.treasury_poster import TreasuryPoster
from treasury_kernel.services.treasury_service import TreasuryService
from treasury_kernel.services.unit_of_work import (
    JoinedUnitOfWork,
    StandaloneUnitOfWork,
)


def _record_count(session_factory) -> int:
    with session_factory() as sess:
        return sess.execute(select(func.count()).select_from(TaxRecord)).scalar_one()


class TestStandalonePosting:

    def test_increments_total_and_category(self, ledger, class_code, read_treasury):
        assert ledger.poster.post(class_code, TaxCategory.INCOME, 5000, "salary income tax")

        treasury = read_treasury()
        assert treasury.total_amount == 5000
        assert treasury.income_revenue == 5000
        assert treasury.stock_revenue == 0
        assert treasury.last_updated is not None

    def test_appends_tax_record(self, ledger, class_code, session_factory):
        ledger.poster.post(class_code, TaxCategory.ITEM_STORE, 99, "Item store VAT: 999")

        with session_factory() as sess:
            record = sess.execute(select(TaxRecord)).scalar_one()
        assert record.class_code == class_code
        assert record.type == "item_store"
        assert record.amount == 99
        assert record.description == "Item store VAT: 999"
        assert record.timestamp is not None

    def test_category_value_accepted(self, ledger, class_code, read_treasury):
        assert ledger.poster.post(class_code, "stock", 7, "Stock buy transaction tax: 700")
        assert read_treasury().stock_revenue == 7

    def test_postings_accumulate(self, ledger, class_code, read_treasury, session_factory):
        ledger.poster.post(class_code, TaxCategory.STOCK, 1, "a")
        ledger.poster.post(class_code, TaxCategory.STOCK, 2, "b")
        ledger.poster.post(class_code, TaxCategory.TRANSACTION, 3, "c")

        treasury = read_treasury()
        assert treasury.total_amount == 6
        assert treasury.stock_revenue == 3
        assert treasury.transaction_revenue == 3
        assert _record_count(session_factory) == 3

    def test_missing_treasury_returns_false(self, ledger, session_factory, captured_logs):
        assert not ledger.poster.post("no-such-class", TaxCategory.STOCK, 10, "x")

        assert _record_count(session_factory) == 0
        failure = next(r for r in captured_logs() if r["message"] == "treasury_posting_failed")
        assert failure["level"] == "ERROR"
        assert failure["exc_code"] == "TREASURY_NOT_FOUND"
        assert failure["mode"] == "standalone"

    def test_record_failure_rolls_back_increment(
        self, ledger, class_code, read_treasury, session_factory
    ):
        def _refuse(mapper, connection, target):
            raise RuntimeError("record store unavailable")

        event.listen(TaxRecord, "before_insert", _refuse)
        try:
            assert not ledger.poster.post(class_code, TaxCategory.INCOME, 500, "x")
        finally:
            event.remove(TaxRecord, "before_insert", _refuse)

        assert read_treasury().total_amount == 0
        assert read_treasury().income_revenue == 0
        assert _record_count(session_factory) == 0


class TestJoinedPosting:

    def test_commit_applies_increment(self, ledger, class_code, session, read_treasury):
        assert ledger.poster.post(class_code, TaxCategory.STOCK, 10, "x", session)

        # Not visible to other connections until the caller commits
        assert read_treasury().total_amount == 0

        session.commit()
        treasury = read_treasury()
        assert treasury.total_amount == 10
        assert treasury.stock_revenue == 10

    def test_rollback_discards_increment(self, ledger, class_code, session, read_treasury):
        assert ledger.poster.post(class_code, TaxCategory.STOCK, 10, "x", session)
        session.rollback()
        assert read_treasury().total_amount == 0

    def test_writes_no_tax_record(self, ledger, class_code, session, session_factory):
        ledger.poster.post(class_code, TaxCategory.INCOME, 10, "x", session)
        session.commit()
        assert _record_count(session_factory) == 0

    def test_loaded_treasury_sees_increment(self, ledger, class_code, session):
        treasury = session.execute(
            select(Treasury).where(Treasury.class_code == class_code)
        ).scalar_one()
        assert treasury.total_amount == 0

        ledger.poster.post(class_code, TaxCategory.TRANSACTION, 4, "x", session)

        assert treasury.total_amount == 4
        assert treasury.transaction_revenue == 4

    def test_missing_treasury_returns_false(self, ledger, session, captured_logs):
        assert not ledger.poster.post("no-such-class", TaxCategory.STOCK, 10, "x", session)
        failure = next(r for r in captured_logs() if r["message"] == "treasury_posting_failed")
        assert failure["mode"] == "joined"

    def test_failed_increment_keeps_earlier_work(
        self, ledger, class_code, session, db_engine, read_treasury
    ):
        with db_engine.begin() as conn:
            conn.exec_driver_sql(
                "CREATE TRIGGER treasury_locked BEFORE UPDATE ON treasuries "
                "BEGIN SELECT RAISE(ABORT, 'treasury locked'); END"
            )
        rolled_back = []
        event.listen(
            db_engine,
            "rollback_savepoint",
            lambda conn, name, context: rolled_back.append(name),
        )

        TreasuryService(session).open_treasury("class-9-9")
        assert not ledger.poster.post(class_code, TaxCategory.STOCK, 10, "x", session)

        assert len(rolled_back) == 1
        session.commit()
        assert read_treasury("class-9-9") is not None
        assert read_treasury().total_amount == 0


class TestValidation:

    @pytest.mark.parametrize("amount", [0, -5, 2.5, True, "10", None])
    def test_invalid_amount(self, ledger, class_code, read_treasury, amount, captured_logs):
        assert not ledger.poster.post(class_code, TaxCategory.STOCK, amount, "x")
        assert read_treasury().total_amount == 0
        failure = next(r for r in captured_logs() if r["message"] == "treasury_posting_failed")
        assert failure["exc_code"] == "INVALID_TAX_AMOUNT"

    def test_unknown_category(self, ledger, class_code, read_treasury, captured_logs):
        assert not ledger.poster.post(class_code, "luxury", 10, "x")
        assert read_treasury().total_amount == 0
        failure = next(r for r in captured_logs() if r["message"] == "treasury_posting_failed")
        assert failure["exc_code"] == "UNKNOWN_TAX_CATEGORY"

    def test_bad_unit_of_work(self, ledger, class_code):
        assert not ledger.poster.post(class_code, TaxCategory.STOCK, 10, "x", object())


class TestUnitOfWorkSelection:

    def test_none_is_standalone(self, session_factory):
        uow = TreasuryPoster(session_factory).unit_of_work_for(None)
        assert isinstance(uow, StandaloneUnitOfWork)
        assert uow.writes_tax_record

    def test_session_is_joined(self, session_factory, session):
        uow = TreasuryPoster(session_factory).unit_of_work_for(session)
        assert isinstance(uow, JoinedUnitOfWork)
        assert uow.session is session
        assert not uow.writes_tax_record

    def test_unit_of_work_passed_through(self, session_factory, session):
        uow = JoinedUnitOfWork(session)
        assert TreasuryPoster(session_factory).unit_of_work_for(uow) is uow

    def test_other_types_rejected(self, session_factory):
        with pytest.raises(TypeError):
            TreasuryPoster(session_factory).unit_of_work_for("session")
