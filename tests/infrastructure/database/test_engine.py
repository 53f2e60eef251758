"""Tests for engine creation and store initialization."""

from pathlib import Path

import pytest
from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from goalgraph.infrastructure.database.engine import (
    WRITE_TRANSACTION,
    create_db_engine,
    init_database,
)
from goalgraph.infrastructure.database.schema import uid_counter


class TestCreateDbEngine:
    def test_wal_and_foreign_keys(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "g.db")
        try:
            with engine.connect() as conn:
                assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        finally:
            engine.dispose()


class TestInitDatabase:
    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "g.db"
        engine = init_database(db_path)
        engine.dispose()
        assert db_path.is_file()

    def test_seeds_counter(self, db_engine: Engine) -> None:
        with db_engine.connect() as conn:
            rows = conn.execute(select(uid_counter)).all()
        assert [(r.name, r.next_value) for r in rows] == [("node", 1)]

    def test_idempotent(self, tmp_path: Path) -> None:
        db_path = tmp_path / "g.db"
        init_database(db_path).dispose()
        engine = init_database(db_path)
        try:
            with engine.connect() as conn:
                count = conn.execute(text("SELECT COUNT(*) FROM uid_counter")).scalar()
            assert count == 1
        finally:
            engine.dispose()


class TestBeginMode:
    def test_write_transaction_takes_lock_at_begin(self, tmp_path: Path) -> None:
        engine = create_db_engine(tmp_path / "g.db", busy_timeout=0.05)
        try:
            with engine.connect().execution_options(**WRITE_TRANSACTION) as writer:
                with writer.begin():
                    with engine.connect() as reader, reader.begin():
                        assert reader.execute(text("SELECT 1")).scalar() == 1
                    with engine.connect().execution_options(**WRITE_TRANSACTION) as other:
                        with pytest.raises(OperationalError, match="locked"):
                            other.begin()
        finally:
            engine.dispose()
