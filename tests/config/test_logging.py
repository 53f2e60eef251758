"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from goalgraph.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    gg = logging.getLogger("goalgraph")
    gg_level = gg.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    gg.setLevel(gg_level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("goalgraph").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("goalgraph").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("goalgraph.test").warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "goalgraph.test"
        assert "timestamp" in parsed

    def test_stdlib_module_logger_is_structured(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("goalgraph.services.goals").debug("goal 1004: create_goal")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "goal 1004: create_goal"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "goalgraph.services.goals"

    def test_third_party_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("alembic").debug("migration noise")
        logging.getLogger("sqlalchemy.engine").debug("statement noise")
        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1

    def test_pool_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.pool").debug("checkout noise")
        assert capfd.readouterr().err == ""

    def test_json_mode_structures_exceptions(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        try:
            raise ValueError("boom")
        except ValueError:
            structlog.get_logger("goalgraph.test").exception("insert failed")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "insert failed"
        assert parsed["exception"][0]["exc_type"] == "ValueError"
        assert parsed["exception"][0]["exc_value"] == "boom"
