"""Command group: traversal, filtering, and layout over a saved project."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lineagectl.commands._base import LineageGroup
from lineagectl.domain.layers import LAYER_TAGS
from lineagectl.domain.models import FilterMode
from lineagectl.services.lineage import LineageService
from lineagectl.services.project import ProjectService

if TYPE_CHECKING:
    from lineagectl.commands._context import AppContext
    from lineagectl.services.result import ServiceResult

_GRAPH_EXAMPLES = """\
  lineagectl graph ancestors proj-1700000000000-abc1234 model.jaffle.orders
  lineagectl graph descendants proj-1700000000000-abc1234 seed.jaffle.raw_customers
  lineagectl graph filter proj-1700000000000-abc1234 --type model --layer staging
  lineagectl graph filter proj-1700000000000-abc1234 --tag finance --tag daily --tag-mode AND
  lineagectl graph filter proj-1700000000000-abc1234 --saved -s orders
  lineagectl graph layout proj-1700000000000-abc1234"""

_MODE = click.Choice([mode.value for mode in FilterMode], case_sensitive=False)


@click.group(cls=LineageGroup, examples=_GRAPH_EXAMPLES)
def graph() -> None:
    """Query the lineage graph of a saved project."""


@graph.command()
@click.argument("project_id")
@click.argument("node_id")
@click.pass_obj
def ancestors(app: AppContext, project_id: str, node_id: str) -> None:
    """List NODE_ID and everything upstream of it."""
    app.emit(app.run(LineageService(app.workspace).ancestors(project_id, node_id)))


@graph.command()
@click.argument("project_id")
@click.argument("node_id")
@click.pass_obj
def descendants(app: AppContext, project_id: str, node_id: str) -> None:
    """List NODE_ID and everything downstream of it (impact analysis)."""
    app.emit(app.run(LineageService(app.workspace).descendants(project_id, node_id)))


@graph.command()
@click.argument("project_id")
@click.argument("node_id")
@click.pass_obj
def focus(app: AppContext, project_id: str, node_id: str) -> None:
    """Show the full lineage of NODE_ID, laid out on its own."""
    app.emit(app.run(LineageService(app.workspace).focus(project_id, node_id)))


@graph.command()
@click.argument("project_id")
@click.argument("node_id")
@click.pass_obj
def inherited(app: AppContext, project_id: str, node_id: str) -> None:
    """Show metadata propagated to NODE_ID from upstream models."""
    app.emit(app.run(LineageService(app.workspace).inherited(project_id, node_id)))


@graph.command("filter")
@click.argument("project_id")
@click.option("-s", "--search", "query", default="", help="Case-insensitive label search.")
@click.option("--type", "resource_types", multiple=True, help="Resource type to keep (repeatable).")
@click.option("--tag", "tags", multiple=True, help="Tag to match (repeatable).")
@click.option("--tag-mode", type=_MODE, default=FilterMode.OR.value, show_default=True)
@click.option(
    "--layer",
    "layers",
    multiple=True,
    type=click.Choice(LAYER_TAGS),
    help="Inferred layer to keep (repeatable).",
)
@click.option("--saved", "use_saved", is_flag=True, help="Apply the project's saved filters.")
@click.option("--save", "save", is_flag=True, help="Store these filters on the project.")
@click.pass_obj
def filter_cmd(
    app: AppContext,
    project_id: str,
    query: str,
    resource_types: tuple[str, ...],
    tags: tuple[str, ...],
    tag_mode: str,
    layers: tuple[str, ...],
    use_saved: bool,
    save: bool,
) -> None:
    """Filter a project's nodes and show the surviving edges.

    Empty criteria do not filter: omitting ``--type`` keeps every type.
    """
    if use_saved and save:
        raise click.UsageError("--saved and --save cannot be combined.")
    mode = FilterMode(tag_mode.upper())

    async def _run() -> ServiceResult:
        if save:
            saved = await ProjectService(app.workspace).save_filters(
                project_id,
                resource_types=resource_types or None,
                tags=tags,
                tag_mode=mode,
                layers=layers or None,
            )
            if not saved.ok:
                return saved
        return await LineageService(app.workspace).filter(
            project_id,
            query=query,
            resource_types=resource_types or None,
            tags=tags or None,
            tag_mode=mode,
            layers=layers or None,
            use_saved=use_saved,
        )

    app.emit(app.run(_run()))


@graph.command()
@click.argument("project_id")
@click.pass_obj
def layout(app: AppContext, project_id: str) -> None:
    """Recompute and store node positions for a project."""
    app.emit(app.run(LineageService(app.workspace).relayout(project_id)))
