"""Command group: export projections of a saved project."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from lineagectl.commands._base import LineageGroup
from lineagectl.services.project import ProjectService

if TYPE_CHECKING:
    from lineagectl.commands._context import AppContext

_OUTPUT_FILE = click.Path(dir_okay=False, writable=True, path_type=Path)


@click.group(
    cls=LineageGroup,
    examples="""\
  lineagectl export graph proj-1700000000000-abc1234 -o lineage.json
  lineagectl export nodes proj-1700000000000-abc1234 > nodes.json""",
)
def export() -> None:
    """Export graph and node data as JSON."""


@export.command("graph")
@click.argument("project_id")
@click.option("-o", "--output", type=_OUTPUT_FILE, default=None, help="Write to a file.")
@click.pass_obj
def graph_cmd(app: AppContext, project_id: str, output: Path | None) -> None:
    """Minimal graph document: project name, timestamp, nodes, edges."""
    app.emit_document(app.run(ProjectService(app.workspace).export_graph(project_id)), output)


@export.command()
@click.argument("project_id")
@click.option("-o", "--output", type=_OUTPUT_FILE, default=None, help="Write to a file.")
@click.pass_obj
def nodes(app: AppContext, project_id: str, output: Path | None) -> None:
    """Flat node records with inferred layers."""
    result = app.run(ProjectService(app.workspace).export_nodes(project_id))
    app.emit_document(result, output, key="items")
