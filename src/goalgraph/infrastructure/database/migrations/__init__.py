"""Alembic migration infrastructure for the graph store.

Alembic is configured in code; the scripts live beside this module.
New stores are created from the schema and stamped at head.
"""

from __future__ import annotations

from pathlib import Path

from alembic.config import Config


def build_config(db_url: str) -> Config:
    """Build an Alembic Config pointing at our migration scripts."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).parent))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def stamp_head(db_path: Path) -> None:
    """Stamp a freshly created store as at the current head revision."""
    from alembic import command

    command.stamp(build_config(f"sqlite:///{db_path}"), "head")


def current_revision(db_path: Path) -> str | None:
    """Return the revision the store is stamped at, or None."""
    from alembic.runtime.migration import MigrationContext
    from sqlalchemy import create_engine

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        with engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()
    finally:
        engine.dispose()
