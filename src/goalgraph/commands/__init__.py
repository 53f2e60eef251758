"""Subcommand modules for goalgraph.

Provides register_commands() which uses deferred imports to keep
``goalgraph --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from goalgraph.commands.frame import frame
    from goalgraph.commands.init_cmd import init_cmd
    from goalgraph.commands.insert import insert
    from goalgraph.commands.resolve import resolve
    from goalgraph.commands.tree import tree
    from goalgraph.commands.visible import visible

    cli.add_command(init_cmd)
    cli.add_command(insert)
    cli.add_command(frame)
    cli.add_command(visible)
    cli.add_command(tree)
    cli.add_command(resolve)
