"""Rich Console factory and theme for lineagectl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

LINEAGE_THEME = Theme(
    {
        "lineage.ok": "bold green",
        "lineage.error": "bold red",
        "lineage.warning": "bold yellow",
        "lineage.op": "bold cyan",
        "lineage.key": "dim",
        "lineage.id": "bold blue",
        "lineage.label": "bold",
        "lineage.layer.raw": "yellow",
        "lineage.layer.staging": "green",
        "lineage.layer.base": "blue",
        "lineage.layer.intermediate": "magenta",
        "lineage.layer.core": "magenta",
        "lineage.layer.mart": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=LINEAGE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_layer(layer: str | None) -> str:
    """Rich style for an inferred layer; mart variants share the mart style."""
    if not layer:
        return ""
    family = layer.split("-", 1)[0]
    style = f"lineage.layer.{family}"
    return style if style in LINEAGE_THEME.styles else ""
