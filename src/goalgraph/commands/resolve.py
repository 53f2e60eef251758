"""Command: map org XIDs to node IDs without creating anything."""

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
  goalgraph resolve --dept 4 --dept 5 --user 206
  goalgraph --json resolve --duty 105""",
)
@org_options
@click.pass_obj
def resolve(
    app: AppContext,
    departments: tuple[str, ...],
    duties: tuple[str, ...],
    users: tuple[str, ...],
) -> None:
    """Resolve department, duty and user XIDs."""
    app.emit(GoalService(app.store).resolve(departments, duties, users))
