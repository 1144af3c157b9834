"""
Module: budget_kernel.db.engine
Responsibility: Builds SQLAlchemy engines and holds the process engine and
    session factory used by scripts.  Services never call into this module;
    they are handed a session.
Architecture position: Kernel > DB.  May import from db/base.py.

Invariants enforced:
    - PostgreSQL (psycopg2) runs at READ COMMITTED behind a QueuePool.
      Settlement application takes its own row lock (FOR UPDATE), so
      nothing stronger is needed.
    - SQLite hands transaction control to SQLAlchemy so that SAVEPOINT
      works.  FOR UPDATE is ignored there; the database write lock
      serializes writers instead.  In-memory URLs share one connection.

Failure modes:
    - RuntimeError from get_engine/get_session before init_engine_from_url().
"""

import atexit
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from budget_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite+pysqlite://")


def _sqlite_engine(database_url: str, echo: bool) -> Engine:
    kwargs: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url in _IN_MEMORY_SQLITE:
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)

    @event.listens_for(engine, "connect")
    def _driver_autocommit(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """An engine for ``database_url``; nothing is registered globally."""
    if database_url.startswith("sqlite"):
        return _sqlite_engine(database_url, echo)
    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
) -> Engine:
    """
    Build the process engine and session factory.

    A second call disposes the previous engine first.
    """
    global _engine, _session_factory

    reset_engine()
    _engine = build_engine(database_url, echo, pool_size, max_overflow)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on normal exit, roll back and re-raise on error.

    Usage::

        with session_scope() as session:
            SettlementService(session).apply(event)
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
    from budget_kernel.db.base import Base
    from budget_kernel.models import import_all_models

    import_all_models()
    return Base.metadata


def create_tables(engine: Engine | None = None) -> None:
    _metadata().create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop every budget kernel table.  Tests and local tooling only."""
    _metadata().drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the process engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
