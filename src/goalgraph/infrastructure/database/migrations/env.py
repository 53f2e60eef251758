"""Alembic environment for the graph store.

Migrations run on an engine built by :func:`create_db_engine`, so they
see the same WAL journal, foreign keys and explicit ``BEGIN`` as the
store. SQLite cannot alter constraints in place; ``render_as_batch``
makes autogenerated revisions rebuild the table instead, which is how
the partial unique index on ``nodes(kind, xid)`` must be changed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from alembic import context
from sqlalchemy.engine import make_url

from goalgraph.infrastructure.database.engine import WRITE_TRANSACTION, create_db_engine
from goalgraph.infrastructure.database.schema import metadata


def _configure(**kwargs: Any) -> None:
    context.configure(
        target_metadata=metadata,
        render_as_batch=True,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout."""
    _configure(
        url=context.config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations to the store file named by ``sqlalchemy.url``."""
    url = context.config.get_main_option("sqlalchemy.url")
    if url is None:
        msg = "sqlalchemy.url must be set in the Alembic config"
        raise RuntimeError(msg)
    database = make_url(url).database
    if not database:
        msg = f"Not a file-backed SQLite URL: {url}"
        raise RuntimeError(msg)

    engine = create_db_engine(Path(database))
    try:
        with engine.connect().execution_options(**WRITE_TRANSACTION) as connection:
            _configure(connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
