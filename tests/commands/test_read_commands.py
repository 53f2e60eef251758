"""Tests for the visible, tree and resolve commands."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

from goalgraph.cli import cli


def _json(cli_runner: CliRunner, *args: str) -> dict[str, Any]:
    result = cli_runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


@pytest.fixture
def _seeded(cli_runner: CliRunner, _isolated_root: None) -> None:
    """Two goals: 1004 managed by dept 4, 1005 under it with user 207."""
    _json(
        cli_runner, "insert", "1004", "--name", "Ship v2", "--creator", "206", "--manager-dept", "4"
    )
    _json(
        cli_runner,
        "insert",
        "1005",
        "--creator",
        "206",
        "--parent",
        "1004",
        "--participator-user",
        "207",
    )


@pytest.mark.usefixtures("_seeded")
class TestVisibleCommand:
    def test_by_department(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "visible", "--dept", "4")["data"]
        assert [item["id"] for item in data["items"]] == ["1004"]
        assert data["max_depth"] == 10

    def test_user_sees_ancestors(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "visible", "--user", "207")["data"]
        assert [item["id"] for item in data["items"]] == ["1004", "1005"]

    def test_max_depth_limits_reach(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "visible", "--user", "207", "--max-depth", "1")["data"]
        assert [item["id"] for item in data["items"]] == ["1005"]

    def test_max_depth_out_of_range(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["visible", "--user", "207", "--max-depth", "0"])
        assert result.exit_code == 2

    def test_no_seeds(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["visible"])
        assert result.exit_code == 0
        assert "no visible goals" in result.output

    def test_table_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["visible", "--user", "206"])
        assert result.exit_code == 0
        assert "Ship v2" in result.output


@pytest.mark.usefixtures("_seeded")
class TestTreeCommand:
    def test_tree(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["tree", "1004"])
        assert result.exit_code == 0, result.output
        assert "1004 [igoal] Ship v2" in result.output
        assert "1005 [igoal]" in result.output

    def test_tree_json(self, cli_runner: CliRunner) -> None:
        data = _json(cli_runner, "tree", "1004")["data"]
        assert data["count"] == 2
        assert data["root"]["managers"]["departments"] == ["4"]

    def test_unknown_goal(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["tree", "999"])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output


@pytest.mark.usefixtures("_seeded")
class TestResolveCommand:
    def test_resolve(self, cli_runner: CliRunner) -> None:
        payload = _json(cli_runner, "resolve", "--dept", "4", "--dept", "9", "--user", "206")
        assert set(payload["data"]["departments"]) == {"4"}
        assert set(payload["data"]["users"]) == {"206"}
        assert payload["data"]["missing"]["departments"] == ["9"]
        assert payload["warnings"] == ["1 XID(s) did not resolve"]

    def test_resolve_human(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["resolve", "--duty", "105"])
        assert result.exit_code == 0
        assert "(missing)" in result.output
