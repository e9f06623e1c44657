"""
Module: treasury_kernel.db.engine
Responsibility: Process-wide engine and session factory, plus the
    transactional helpers built on them.
Architecture position: Kernel > DB.  ``create_tables`` imports models/ so
    the metadata is complete; nothing else here reaches above db/.

Invariants enforced:
    - PostgreSQL: QueuePool with pre-ping, READ COMMITTED.  A treasury
      increment is one UPDATE statement, which is atomic at that level.
    - SQLite: connections may cross threads and wait up to
      ``sqlite_busy_timeout`` seconds for the write lock rather than
      failing on first contention.  ``:memory:`` databases share a single
      connection so every session sees the same data.
    - SQLite: SQLAlchemy emits BEGIN itself so SAVEPOINTs nest inside the
      surrounding transaction instead of committing it.
    - Sessions do not expire attributes on commit; DTOs and CLI output can
      read committed objects after the session closes.

Failure modes:
    - RuntimeError from the getters before ``init_engine_from_url()``.
    - Pool timeout when more than pool_size + max_overflow connections are
      checked out (PostgreSQL).
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from treasury_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    sqlite_busy_timeout: float = 30.0,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Replaces any engine from an earlier call.  Pool arguments apply to
    PostgreSQL only; ``sqlite_busy_timeout`` applies to SQLite only.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    dialect = url.get_backend_name()

    if dialect == "sqlite":
        options: dict = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": sqlite_busy_timeout,
            },
        }
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options = {
            "poolclass": QueuePool,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": pool_pre_ping,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
            "isolation_level": "READ COMMITTED",
        }

    _engine = create_engine(url, echo=echo, **options)
    if dialect == "sqlite":
        _enable_sqlite_savepoints(_engine)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": dialect, "pool_size": pool_size, "echo": echo},
    )
    return _engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite opens transactions lazily and commits on SAVEPOINT release
    # unless the driver's own transaction handling is switched off.
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """Open a new session on the current engine."""
    return get_session_factory()()


def get_session_factory() -> sessionmaker[Session]:
    """
    Return the session factory.

    This is the persistence handle given to RateResolver, TreasuryPoster
    and TaxCalculator; each thread or request opens its own session from it.
    """
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Session that commits on clean exit and rolls back on error.

    Usage:
        with session_scope() as session:
            TreasuryService(session).open_treasury("3-2")
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from treasury_kernel.db.base import Base

    import treasury_kernel.models  # noqa: F401  (registers every table)

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_at_exit() -> None:
    if _engine is not None:
        _engine.dispose()
