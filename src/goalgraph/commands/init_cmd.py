"""Command: store initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from goalgraph.commands._base import GoalGraphCommand
from goalgraph.services.setup import SetupService

if TYPE_CHECKING:
    from goalgraph.commands._context import AppContext

_INIT_EXAMPLES = """\
  goalgraph init
  goalgraph --store /var/lib/goalgraph/org.db init
  goalgraph --json init"""


@click.command("init", cls=GoalGraphCommand, examples=_INIT_EXAMPLES)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create the graph store and stamp its schema revision."""
    app.emit(SetupService(app.store).init_store())
