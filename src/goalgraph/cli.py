"""Root CLI group for goalgraph with global flags and command registration."""

from __future__ import annotations

from typing import Any

import click
from pydantic import ValidationError

from goalgraph import __version__
from goalgraph.commands import register_commands
from goalgraph.commands._context import AppContext
from goalgraph.config.discovery import ConfigError
from goalgraph.config.settings import GoalGraphSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="goalgraph")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--store", "store_path", default=None, help="Override the store database path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    store_path: str | None,
) -> None:
    """goalgraph — goal ownership and visibility on an org graph."""
    ctx.ensure_object(dict)
    overrides: dict[str, Any] = {}
    if store_path is not None:
        overrides["store"] = {"path": store_path}
    try:
        settings = GoalGraphSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            verbose=verbose,
            log_json=log_json,
            **overrides,
        )
    except (ConfigError, ValidationError) as exc:
        raise click.ClickException(str(exc)) from exc
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
