"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from lineagectl.output.console import create_console, get_output, style_for_layer

if TYPE_CHECKING:
    from rich.console import Console

    from lineagectl.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a string via Rich (plain text off a TTY)."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output for ``--quiet``: ids for lists, status otherwise."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"
    items = result.data.get("items")
    if isinstance(items, list) and items:
        return "\n".join(str(item["id"]) for item in items if isinstance(item, dict) and "id" in item)
    return f"OK: {result.op}"


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="lineage.ok"), Text(f"  {result.op}", style="lineage.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="lineage.key")
    if isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    elif key == "id" or key.endswith("_id"):
        v = Text(str(value), style="lineage.id")
    else:
        v = Text(str(value))
    console.print(k, v)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_node_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("node_id", "count", "edge_count"):
        if key in result.data:
            _field(console, key, result.data[key])
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("ID", style="lineage.id", no_wrap=True)
    table.add_column("Label", style="lineage.label")
    table.add_column("Type")
    table.add_column("Layer")
    for item in result.data.get("items", []):
        layer = item.get("layer") or ""
        table.add_row(
            str(item.get("id", "")),
            str(item.get("label", "")),
            str(item.get("type", "")),
            Text(layer, style=style_for_layer(layer)),
        )
    console.print(table)


def _render_project_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("ID", style="lineage.id", no_wrap=True)
    table.add_column("Name", style="lineage.label")
    table.add_column("Source")
    table.add_column("Nodes", justify="right")
    table.add_column("Planned", justify="right")
    table.add_column("Updated", style="dim")
    if verbose:
        table.add_column("Created", style="dim")
    for item in result.data.get("items", []):
        row = [
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("sourceProjectName", "")),
            str(item.get("nodeCount", "")),
            str(item.get("plannedNodeCount", "")),
            str(item.get("updatedAt", "")),
        ]
        if verbose:
            row.append(str(item.get("createdAt", "")))
        table.add_row(*row)
    console.print(table)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="lineage.error"),
        Text(f"  {result.op}", style="lineage.op"),
        Text(" - "),
        msg,
    )
    if verbose and err and err.detail:
        for key, value in err.detail.items():
            _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "ancestors": _render_node_table,
    "descendants": _render_node_table,
    "focus": _render_node_table,
    "filter": _render_node_table,
    "list_projects": _render_project_table,
}
