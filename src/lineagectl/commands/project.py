"""Command group: saved project lifecycle, annotation, and backups."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from lineagectl.commands._base import LineageGroup
from lineagectl.services.project import ProjectService

if TYPE_CHECKING:
    from lineagectl.commands._context import AppContext

_PROJECT_EXAMPLES = """\
  lineagectl project import-manifest target/manifest.json --name "Jaffle plan"
  lineagectl project list
  lineagectl project show proj-1700000000000-abc1234
  lineagectl project add-node proj-1700000000000-abc1234 model.jaffle.stg_orders
  lineagectl project backup -o backup.json
  lineagectl project restore backup.json --yes"""

_JSON_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
_OUTPUT_FILE = click.Path(dir_okay=False, writable=True, path_type=Path)


@click.group(cls=LineageGroup, examples=_PROJECT_EXAMPLES)
def project() -> None:
    """Manage saved lineage projects."""


@project.command("import-manifest")
@click.argument("manifest", type=_JSON_FILE)
@click.option("--name", default=None, help="Project name (defaults to the dbt project name).")
@click.pass_obj
def import_manifest(app: AppContext, manifest: Path, name: str | None) -> None:
    """Build a graph from a manifest and save it as a new project."""
    app.emit(app.run(ProjectService(app.workspace).import_manifest(manifest, name=name)))


@project.command("list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List saved projects, most recently updated first."""
    app.emit(app.run(ProjectService(app.workspace).list_projects()))


@project.command()
@click.argument("project_id")
@click.pass_obj
def show(app: AppContext, project_id: str) -> None:
    """Show a project's metadata and saved filters."""
    app.emit(app.run(ProjectService(app.workspace).show(project_id)))


@project.command()
@click.argument("project_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(app: AppContext, project_id: str, yes: bool) -> None:
    """Delete a project. This cannot be undone."""
    if not yes:
        click.confirm(f"Delete project {project_id}? This cannot be undone.", abort=True)
    app.emit(app.run(ProjectService(app.workspace).delete(project_id)))


@project.command()
@click.argument("project_id")
@click.option("-o", "--output", type=_OUTPUT_FILE, default=None, help="Write to a file.")
@click.pass_obj
def export(app: AppContext, project_id: str, output: Path | None) -> None:
    """Export one project as a SavedProject JSON document."""
    app.emit_document(app.run(ProjectService(app.workspace).export_project(project_id)), output)


@project.command("import")
@click.argument("project_file", type=_JSON_FILE)
@click.pass_obj
def import_cmd(app: AppContext, project_file: Path) -> None:
    """Import a SavedProject JSON file as a new project copy."""
    data = app.read_json(project_file)
    app.emit(app.run(ProjectService(app.workspace).import_project(data)))


@project.command()
@click.option("-o", "--output", type=_OUTPUT_FILE, default=None, help="Write to a file.")
@click.pass_obj
def backup(app: AppContext, output: Path | None) -> None:
    """Export every saved project into one backup document."""
    app.emit_document(app.run(ProjectService(app.workspace).backup()), output)


@project.command()
@click.argument("backup_file", type=_JSON_FILE)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def restore(app: AppContext, backup_file: Path, yes: bool) -> None:
    """Replace all saved projects with the contents of a backup."""
    data = app.read_json(backup_file)
    if not yes:
        click.confirm("This will replace all existing projects. Continue?", abort=True)
    app.emit(app.run(ProjectService(app.workspace).restore(data)))


@project.command("add-node")
@click.argument("project_id")
@click.argument("parent_id")
@click.option("--label", default=None, help="Label for the planned node.")
@click.pass_obj
def add_node(app: AppContext, project_id: str, parent_id: str, label: str | None) -> None:
    """Add a planned model downstream of PARENT_ID."""
    app.emit(app.run(ProjectService(app.workspace).add_node(project_id, parent_id, label=label)))


@project.command("update-node")
@click.argument("project_id")
@click.argument("node_id")
@click.option("--label", default=None)
@click.option("--description", default=None)
@click.option("--type", "resource_type", default=None, help="Resource type (model, seed, ...).")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable).")
@click.pass_obj
def update_node(
    app: AppContext,
    project_id: str,
    node_id: str,
    label: str | None,
    description: str | None,
    resource_type: str | None,
    tags: tuple[str, ...],
) -> None:
    """Edit a node's label, description, type, or tags."""
    app.emit(
        app.run(
            ProjectService(app.workspace).update_node(
                project_id,
                node_id,
                label=label,
                description=description,
                resource_type=resource_type,
                tags=list(tags) if tags else None,
            )
        )
    )
