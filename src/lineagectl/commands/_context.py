"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Workspace initialization, a bridge
from Click's synchronous callbacks to the async services, and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from lineagectl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from lineagectl.config.settings import LineageSettings
    from lineagectl.infrastructure.workspace import Workspace
    from lineagectl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: LineageSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from lineagectl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

    @property
    def workspace(self) -> Workspace:
        """The workspace instance (created lazily on first access)."""
        if self._workspace is None:
            from lineagectl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    def close(self) -> None:
        if self._workspace is not None:
            self._workspace.close()
            self._workspace = None

    @staticmethod
    def run(coro: Coroutine[Any, Any, ServiceResult]) -> ServiceResult:
        """Drive an async service call to completion on a fresh event loop."""
        return asyncio.run(coro)

    @staticmethod
    def read_json(path: Path) -> Any:
        """Read a JSON document, turning decode errors into a usage error."""
        try:
            return json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise click.ClickException(f"Invalid JSON file: {path}") from exc

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def emit_document(
        self, result: ServiceResult, output: Path | None, *, key: str | None = None
    ) -> None:
        """Write a document-shaped result (export/backup) to *output* or stdout.

        Failures go through :meth:`emit`. On success the raw ``data``
        document (or its *key* entry) is written as JSON, without the
        ServiceResult envelope.
        """
        if not result.ok:
            self.emit(result)
            return
        document = result.data if key is None else result.data[key]
        text = json.dumps(document, indent=2)
        if output is None:
            click.echo(text)
            return
        output.write_text(text + "\n", encoding="utf-8")
        if not self.settings.quiet:
            click.echo(f"Wrote {result.op} to {output}", err=True)
