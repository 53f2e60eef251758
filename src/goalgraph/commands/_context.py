"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy store initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.output.formatters import OutputSettings, format_result
from goalgraph.services.result import failure

if TYPE_CHECKING:
    from goalgraph.config.settings import GoalGraphSettings
    from goalgraph.infrastructure.store import GraphStore
    from goalgraph.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: GoalGraphSettings) -> None:
        self.settings = settings
        self._store: GraphStore | None = None

        from goalgraph.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from goalgraph.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def store(self) -> GraphStore:
        """The graph store (opened lazily; exits 1 if it cannot be opened)."""
        if self._store is None:
            from goalgraph.infrastructure.errors import StoreConnectionError
            from goalgraph.infrastructure.store import GraphStore

            try:
                self._store = GraphStore(self.settings)
            except StoreConnectionError as exc:
                result = failure("open_store", exc.code, str(exc))
                click.echo(format_result(result, settings=self._output_settings()), err=True)
                raise SystemExit(1) from exc
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def _output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self._output_settings()
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
