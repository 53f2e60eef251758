"""Command: insert a goal with its managers, participators and creator."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.commands._base import GoalGraphCommand
from goalgraph.domain.members import MemberSet
from goalgraph.domain.nodes import Goal, Tag
from goalgraph.services.goals import GoalService

if TYPE_CHECKING:
    from goalgraph.commands._context import AppContext

_INSERT_EXAMPLES = """\
  goalgraph insert 1004 --name "Ship v2" --creator 206
  goalgraph insert 1004 --creator 206 \\
      --manager-dept 4 --participator-dept 5 \\
      --manager-duty 105 --participator-duty 106 --participator-duty 107 \\
      --manager-user 206 --participator-user 207
  goalgraph insert 1005 --creator 206 --parent 1004 --tag q3 --tag-name "Q3 plan"
  goalgraph --json insert 1006 --creator 207 --timeout 2"""


@click.command(cls=GoalGraphCommand, examples=_INSERT_EXAMPLES)
@click.argument("goal_xid")
@click.option("--creator", required=True, help="XID of the owning user.")
@click.option("--name", default="", help="Goal name.")
@click.option("--state", default=0, type=int, help="Goal state code.")
@click.option("--manager-dept", multiple=True, help="Managing department XID (repeatable).")
@click.option("--manager-duty", multiple=True, help="Managing duty XID (repeatable).")
@click.option("--manager-user", multiple=True, help="Managing user XID (repeatable).")
@click.option("--participator-dept", multiple=True, help="Participating department XID.")
@click.option("--participator-duty", multiple=True, help="Participating duty XID.")
@click.option("--participator-user", multiple=True, help="Participating user XID.")
@click.option("--parent", default=None, help="XID of an existing parent goal.")
@click.option("--tag", "tag_xid", default=None, help="Tag XID to attach.")
@click.option("--tag-name", default="", help="Name for a newly created tag.")
@click.option("--timeout", default=None, type=float, help="Seconds before aborting.")
@click.pass_obj
def insert(
    app: AppContext,
    goal_xid: str,
    creator: str,
    name: str,
    state: int,
    manager_dept: tuple[str, ...],
    manager_duty: tuple[str, ...],
    manager_user: tuple[str, ...],
    participator_dept: tuple[str, ...],
    participator_duty: tuple[str, ...],
    participator_user: tuple[str, ...],
    parent: str | None,
    tag_xid: str | None,
    tag_name: str,
    timeout: float | None,
) -> None:
    """Insert a goal and link it to its org nodes in one transaction."""
    svc = GoalService(app.store)
    result = svc.insert_goal(
        Goal(xid=goal_xid, name=name, state=state),
        creator=creator,
        managers=MemberSet.of(manager_dept, manager_duty, manager_user),
        participators=MemberSet.of(participator_dept, participator_duty, participator_user),
        parent=parent,
        tag=Tag(xid=tag_xid, name=tag_name) if tag_xid is not None else None,
        timeout=timeout,
    )
    app.emit(result)
