"""Database engine setup for the SQLite-backed graph store.

SQLite gives us what the store contract needs: ACID transactions that
are discarded unless committed, WAL mode so readers see a consistent
snapshot while a writer is active, and unique indexes for XID dedup.
The default store lives at ``{root}/.goalgraph/goalgraph.db``.

Read-write transactions open with ``BEGIN IMMEDIATE`` (request it with
:data:`WRITE_TRANSACTION` as connection execution options). WAL mode
refuses to upgrade a reading transaction to a writer without calling
the busy handler, so writers must take the write lock up front for
``busy_timeout`` to apply.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine

from goalgraph.infrastructure.database.counters import NODE_COUNTER
from goalgraph.infrastructure.database.schema import metadata, uid_counter

BEGIN_MODE_OPTION = "goalgraph_begin_mode"
WRITE_TRANSACTION: dict[str, Any] = {BEGIN_MODE_OPTION: "IMMEDIATE"}


def create_db_engine(db_path: Path, *, busy_timeout: float = 5.0) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    *busy_timeout* bounds how long a connection waits on another
    writer's lock before failing.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Let SQLAlchemy emit BEGIN itself so reads join the transaction.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn: Any) -> None:
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(db_path: Path, *, busy_timeout: float = 5.0) -> Engine:
    """Initialize the store database at *db_path*.

    Creates the parent directory, all tables from :data:`schema.metadata`
    and seeds the node-ID counter. Safe to call on an existing store.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, busy_timeout=busy_timeout)

    metadata.create_all(engine)
    _seed_counter(engine)
    return engine


def _seed_counter(engine: Engine) -> None:
    """Insert the node-ID counter row unless it already exists."""
    with engine.connect().execution_options(**WRITE_TRANSACTION) as conn, conn.begin():
        conn.execute(
            sqlite_insert(uid_counter)
            .values(name=NODE_COUNTER, next_value=1)
            .on_conflict_do_nothing(index_elements=[uid_counter.c.name])
        )
