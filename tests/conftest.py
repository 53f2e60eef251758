"""Shared pytest fixtures and test helpers for goalgraph tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from goalgraph.config.settings import GoalGraphSettings
from goalgraph.domain.members import MemberSet
from goalgraph.domain.nodes import Goal
from goalgraph.infrastructure.database.engine import init_database
from goalgraph.infrastructure.store import GraphStore
from goalgraph.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's GOALGRAPH_* environment out of the tests."""
    for name in ("GOALGRAPH_CONFIG", "GOALGRAPH_STORE__PATH", "GOALGRAPH_VISIBILITY__MAX_DEPTH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_process_state() -> Iterator[None]:
    """Undo logging and telemetry changes made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    gg_level = logging.getLogger("goalgraph").level
    yield
    disable_telemetry()
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("goalgraph").setLevel(gg_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "graph.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path) -> GoalGraphSettings:
    return GoalGraphSettings.from_cli(root=tmp_path)


@pytest.fixture
def store(settings: GoalGraphSettings) -> Iterator[GraphStore]:
    """Graph store on a temporary database."""
    s = GraphStore(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated store.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def insert_goal(
    store: GraphStore,
    xid: str,
    *,
    creator: str,
    managers: MemberSet | None = None,
    participators: MemberSet | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """Insert a goal via GoalService, asserting success."""
    from goalgraph.services.goals import GoalService

    result = GoalService(store).insert_goal(
        Goal(xid=xid, name=kwargs.pop("name", f"Goal {xid}")),
        creator=creator,
        managers=managers,
        participators=participators,
        **kwargs,
    )
    assert result.ok, result.error
    return result.data


def count_rows(engine: Engine, table: str) -> int:
    with engine.connect() as conn:
        return conn.exec_driver_sql(f"SELECT COUNT(*) FROM {table}").scalar_one()
