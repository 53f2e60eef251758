"""Tests for output formatting."""

import json

from goalgraph.output.console import GOALGRAPH_THEME, create_console, get_output, style_for_kind
from goalgraph.output.formatters import OutputSettings, format_result
from goalgraph.services.result import ServiceResult, failure


class TestFormatResult:
    def test_json_mode(self) -> None:
        result = ServiceResult(ok=True, op="resolve", data={"users": {"206": "0x3"}})
        parsed = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert parsed["ok"] is True
        assert parsed["data"]["users"] == {"206": "0x3"}

    def test_json_includes_warnings(self) -> None:
        result = ServiceResult(ok=True, op="resolve", warnings=["1 XID(s) did not resolve"])
        parsed = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert parsed["warnings"] == ["1 XID(s) did not resolve"]

    def test_json_failure(self) -> None:
        result = failure("goal_tree", "NOT_FOUND", "No goal with XID '9'")
        parsed = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert parsed["ok"] is False
        assert parsed["error"]["code"] == "NOT_FOUND"

    def test_default_is_rich(self) -> None:
        result = ServiceResult(ok=True, op="resolve", data={})
        assert format_result(result).startswith("OK")


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(width=40)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_kind_styles(self) -> None:
        assert style_for_kind("igoal") == "gg.kind.igoal"
        assert style_for_kind("frame") == "gg.kind.frame"
        assert style_for_kind("tag") == ""

    def test_theme_defines_kind_styles(self) -> None:
        assert "gg.kind.igoal" in GOALGRAPH_THEME.styles
