"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from goalgraph.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from goalgraph.services.result import ServiceResult

_Renderer: TypeAlias = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="gg.ok")
    op = Text(f"  {result.op}", style="gg.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="gg.key")
    if key in ("id", "uid"):
        v = Text(str(value), style="gg.id")
    elif key == "name":
        v = Text(str(value), style="gg.name")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _xid_list(xids: list[str]) -> str:
    return ", ".join(xids) if xids else "-"


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="gg.error")
    op = Text(f"  {result.op}", style="gg.op")
    code = Text(f" [{err.code}]" if err else "", style="gg.key")
    console.print(label, op, code, Text(" — "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutations ─────────────────────────────────────────────────────────


def _render_insert(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render insert_goal / insert_frame results."""
    _status_line(console, result)
    d = result.data
    for key in ("id", "uid", "creator", "parent", "tag", "edges_added"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    if verbose:
        for edge in d.get("edges", []):
            console.print(f"    {edge['subject']} -[{edge['relation']}]-> {edge['object']}")
        _render_meta(console, result)


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "path", d.get("path", ""))
    _field(console, "revision", d.get("revision") or "-")
    if not d.get("stamped"):
        console.print(Text("  already initialized", style="dim"))
    if verbose:
        _render_meta(console, result)


# ── Reads ─────────────────────────────────────────────────────────────


def _render_visible(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render visible_goals as a table, oldest update first."""
    _status_line(console, result)
    items = result.data.get("items", [])
    if not items:
        console.print(Text("  no visible goals", style="dim"))
    else:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("ID", style="gg.id", no_wrap=True)
        table.add_column("Name", style="gg.name")
        table.add_column("State", justify="right")
        table.add_column("Creator", style="gg.creator")
        table.add_column("Tag")
        table.add_column("Updated", style="dim")
        for item in items:
            tag = item.get("tag")
            table.add_row(
                str(item["id"]),
                item.get("name") or "",
                str(item.get("state", 0)),
                item.get("creator") or "-",
                tag["name"] or tag["id"] if tag else "-",
                item.get("updated_at") or "",
            )
        console.print(table)
    if verbose:
        _field(console, "max_depth", result.data.get("max_depth"))
        _render_meta(console, result)


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for group in ("departments", "duties", "users"):
        mapping: dict[str, str] = d.get(group, {})
        missing: list[str] = d.get("missing", {}).get(group, [])
        if not mapping and not missing:
            continue
        console.print(Text(f"  {group}:", style="gg.key"))
        for xid, uid in mapping.items():
            console.print(Text(f"    {xid}", style="gg.id"), Text(f"→ {uid}"))
        for xid in missing:
            console.print(Text(f"    {xid}", style="gg.id"), Text("→ (missing)", style="gg.warning"))
    if verbose:
        _render_meta(console, result)


def _tree_label(node: dict[str, Any]) -> Text:
    label = Text()
    label.append(str(node["id"]), style="gg.id")
    label.append(f" [{node['kind']}]", style=style_for_kind(node["kind"]))
    if node.get("name"):
        label.append(f" {node['name']}", style="gg.name")
    if node.get("creator"):
        label.append(f"  owner={node['creator']}", style="gg.creator")
    return label


def _add_members(branch: Tree, node: dict[str, Any]) -> None:
    for relation in ("managers", "participators"):
        groups = node.get(relation, {})
        parts = [f"{g}={_xid_list(xids)}" for g, xids in groups.items() if xids]
        if parts:
            branch.add(Text(f"{relation}: {'; '.join(parts)}", style="dim"))


def _add_subtrees(tree: Tree, root: dict[str, Any], *, verbose: bool) -> None:
    stack = [(tree, child) for child in reversed(root.get("children", []))]
    while stack:
        parent, node = stack.pop()
        branch = parent.add(_tree_label(node))
        if verbose and node["kind"] == "igoal":
            _add_members(branch, node)
        stack.extend((branch, child) for child in reversed(node.get("children", [])))


def _render_goal_tree(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render goal_tree as a Rich tree; members shown when verbose."""
    _status_line(console, result)
    root = result.data["root"]
    tree = Tree(_tree_label(root))
    if verbose:
        _add_members(tree, root)
    _add_subtrees(tree, root, verbose=verbose)
    console.print(tree)
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, _Renderer] = {
    "insert_goal": _render_insert,
    "insert_frame": _render_insert,
    "init_store": _render_init,
    "visible_goals": _render_visible,
    "resolve": _render_resolve,
    "goal_tree": _render_goal_tree,
}
