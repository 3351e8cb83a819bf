"""Standalone command: build a lineage graph from a manifest without saving."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from lineagectl.commands._base import LineageCommand
from lineagectl.services.lineage import LineageService

if TYPE_CHECKING:
    from lineagectl.commands._context import AppContext


@click.command(
    cls=LineageCommand,
    examples="""\
  lineagectl build target/manifest.json
  lineagectl --json build target/manifest.json --graph""",
)
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--graph", "include_graph", is_flag=True, help="Include positioned nodes and edges.")
@click.pass_obj
def build(app: AppContext, manifest: Path, include_graph: bool) -> None:
    """Build and summarize the lineage graph of a dbt manifest."""
    app.emit(LineageService(app.workspace).build(manifest, include_graph=include_graph))
