"""
Pytest fixtures for the treasury kernel test suite.

Provides:
- A file-backed SQLite database per test (real commits, real locking)
- Session factory / session / wired ledger fixtures
- Structured log capture

Each test gets a fresh database file under ``tmp_path``, so tests that
commit (standalone postings, concurrency) need no cleanup.
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from treasury_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from treasury_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from treasury_kernel.ledger import Ledger, build_ledger
from treasury_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from treasury_kernel.models.treasury import Treasury
from treasury_kernel.services.treasury_service import TreasuryService

CLASS_CODE = "class-3-2"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture treasury_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.calculator.apply_stock_tax(...)
            logs = captured_logs()
            assert any(r["message"] == "tax_applied" for r in logs)
    """
    configure_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("treasury_kernel")
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database file with all tables and append-only listeners."""
    eng = init_engine_from_url(f"sqlite:///{tmp_path / 'treasury.db'}")
    create_tables()
    register_immutability_listeners()
    yield eng
    unregister_immutability_listeners()
    reset_engine()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker[Session]:
    return get_session_factory()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """A caller-owned session; rolled back and closed at teardown."""
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def ledger(session_factory) -> Ledger:
    return build_ledger(session_factory)


@pytest.fixture
def class_code(session_factory) -> str:
    """A class with an opened (committed) treasury."""
    with session_factory.begin() as sess:
        TreasuryService(sess).open_treasury(CLASS_CODE)
    return CLASS_CODE


@pytest.fixture
def read_treasury(session_factory):
    """Read a treasury row in a fresh session (sees committed state only)."""

    def _read(code: str = CLASS_CODE) -> Treasury | None:
        with session_factory() as sess:
            return sess.execute(
                select(Treasury).where(Treasury.class_code == code)
            ).scalar_one_or_none()

    return _read
