"""Command: list goals visible to departments, duties and users."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.commands._base import GoalGraphCommand, org_options
from goalgraph.services.goals import GoalService

if TYPE_CHECKING:
    from goalgraph.commands._context import AppContext


@click.command(
    cls=GoalGraphCommand,
    examples="""\
  goalgraph visible --user 206
  goalgraph visible --dept 4 --duty 105 --max-depth 3
  goalgraph --json visible --user 206 --user 207""",
)
@org_options
@click.option(
    "--max-depth",
    default=None,
    type=click.IntRange(1, 64),
    help="Max edges followed from a seed (default from config).",
)
@click.option("--timeout", default=None, type=float, help="Seconds before aborting.")
@click.pass_obj
def visible(
    app: AppContext,
    departments: tuple[str, ...],
    duties: tuple[str, ...],
    users: tuple[str, ...],
    max_depth: int | None,
    timeout: float | None,
) -> None:
    """Goals reachable from the given org nodes, oldest update first."""
    svc = GoalService(app.store)
    app.emit(
        svc.visible_goals(departments, duties, users, max_depth=max_depth, timeout=timeout)
    )
