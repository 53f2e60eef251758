"""Command: hang a frame under an existing goal."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.commands._base import GoalGraphCommand
from goalgraph.domain.nodes import Frame
from goalgraph.services.goals import GoalService

if TYPE_CHECKING:
    from goalgraph.commands._context import AppContext


@click.command(
    cls=GoalGraphCommand,
    examples="""\
  goalgraph frame F-1 --parent 1004 --name "Kickoff"
  goalgraph --json frame F-2 --parent 1004""",
)
@click.argument("frame_xid")
@click.option("--parent", required=True, help="XID of the goal the frame belongs to.")
@click.option("--name", default="", help="Frame name.")
@click.option("--timeout", default=None, type=float, help="Seconds before aborting.")
@click.pass_obj
def frame(app: AppContext, frame_xid: str, parent: str, name: str, timeout: float | None) -> None:
    """Create a frame under a goal."""
    svc = GoalService(app.store)
    app.emit(svc.insert_frame(Frame(xid=frame_xid, name=name), parent=parent, timeout=timeout))
