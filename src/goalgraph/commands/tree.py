"""Command: show a goal with its sub-goals, frames and members."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.commands._base import GoalGraphCommand
from goalgraph.services.goals import GoalService

if TYPE_CHECKING:
    from goalgraph.commands._context import AppContext


@click.command(
    cls=GoalGraphCommand,
    examples="""\
  goalgraph tree 1004
  goalgraph -v tree 1004
  goalgraph --json tree 1004""",
)
@click.argument("goal_xid")
@click.pass_obj
def tree(app: AppContext, goal_xid: str) -> None:
    """Print the goal tree rooted at GOAL_XID."""
    app.emit(GoalService(app.store).goal_tree(goal_xid))
