"""
Module: freight_kernel.db.engine
Responsibility: Engine and session handling for reading the portal
    database.  The aggregation engines only ever read, so the usual entry
    point is ``read_only_session()``; ``session_scope()`` commits and exists
    for fixtures and local tooling that load rows.
Architecture position: Kernel > DB.  May import from db/base.py.
    create_tables() imports the models so their tables are registered.

Invariants enforced:
    - One process-wide engine, replaced only through init_engine_from_url()
      and reset_engine().
    - SQLite gets a StaticPool so every session of the process sees the
      same in-memory database.  Other backends get a pre-pinged QueuePool.
    - read_only_session() never commits.

Failure modes:
    - RuntimeError when a session is requested before init_engine_from_url().
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from freight_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized; call init_engine_from_url() first"


def _pool_options(url: URL, pool_size: int, max_overflow: int) -> dict:
    if url.get_backend_name() == "sqlite":
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """
    Create the process-wide engine for ``database_url``.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite://`` or
            ``postgresql+psycopg://reader@host/portal``.
        echo: Log every SQL statement.
        pool_size: Pooled connections (ignored for SQLite).
        max_overflow: Connections allowed beyond the pool (ignored for SQLite).
    """
    global _engine, _sessions

    url = make_url(database_url)
    _engine = create_engine(url, echo=echo, **_pool_options(url, pool_size, max_overflow))
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": url.get_backend_name(), "database": url.database},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """New session bound to the process-wide engine.  The caller closes it."""
    if _sessions is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _sessions()


@contextmanager
def read_only_session() -> Iterator[Session]:
    """
    Session for selectors.  Always rolled back and closed on exit.

    Usage:
        with read_only_session() as session:
            invoices = RecordSelector(session).fetch_invoices()
    """
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session that commits on success and rolls back on error."""
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
    """Create the read-model tables (tests and local tooling)."""
    from freight_kernel.db.base import Base
    import freight_kernel.models  # noqa: F401  registers the tables

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from freight_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


atexit.register(reset_engine)
