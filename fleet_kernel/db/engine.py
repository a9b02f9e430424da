"""
Module: fleet_kernel.db.engine
Responsibility: Own the process-wide engine and session factory, and the
    one transactional scope that commits fleet writes.
Architecture position: Kernel > DB.  May import from db/base.py and, for
    table registration only, fleet_kernel.models.

Invariants enforced:
    - session_scope() is the only place that commits.  Services flush; an
      expense write and the reconciliation of its trip land in the same
      transaction.
    - In-memory SQLite keeps a single connection (StaticPool) so every
      session sees the same database.

Failure modes:
    - RuntimeError from get_engine()/get_session() before
      init_engine_from_url().
    - Exceptions raised inside session_scope() roll back and propagate.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from fleet_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _engine_options(
    database_url: str,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    PostgreSQL gets a READ COMMITTED QueuePool; the pool arguments are
    ignored for SQLite.  Calling this again replaces the previous engine
    without disposing it, so tests call ``reset_engine()`` first.
    """
    global _engine, _SessionFactory

    options = _engine_options(
        database_url, pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle,
    )
    _engine = create_engine(database_url, echo=echo, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "pool": options["poolclass"].__name__},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new, unmanaged session; the caller commits and closes it."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on clean exit, roll back and re-raise otherwise.

    Usage::

        with session_scope() as session:
            ExpenseService(session, policy).create_expense(...)
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


def _metadata():
    from fleet_kernel.db.base import Base
    import fleet_kernel.models  # noqa: F401  (registers tables on Base.metadata)

    return Base.metadata


def create_tables() -> None:
    _metadata().create_all(get_engine())


def drop_tables() -> None:
    """Drop every fleet table (tests and demo resets)."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
