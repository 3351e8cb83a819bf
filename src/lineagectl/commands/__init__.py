"""Subcommand modules for lineagectl.

Provides register_commands() which uses deferred imports to keep
``lineagectl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from lineagectl.commands.export import export
    from lineagectl.commands.graph import graph
    from lineagectl.commands.project import project

    cli.add_command(project)
    cli.add_command(graph)
    cli.add_command(export)

    # --- Standalone commands ---
    from lineagectl.commands.build import build

    cli.add_command(build)
