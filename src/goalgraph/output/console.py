"""Rich Console factory and theme for goalgraph output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

GOALGRAPH_THEME = Theme(
    {
        "gg.ok": "bold green",
        "gg.error": "bold red",
        "gg.warning": "bold yellow",
        "gg.op": "bold cyan",
        "gg.key": "dim",
        "gg.id": "bold blue",
        "gg.name": "bold",
        "gg.kind.igoal": "green",
        "gg.kind.frame": "magenta",
        "gg.creator": "cyan",
    }
)

_KIND_STYLES: dict[str, str] = {
    "igoal": "gg.kind.igoal",
    "frame": "gg.kind.frame",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=GOALGRAPH_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for a node kind."""
    return _KIND_STYLES.get(kind, "")
