"""Click base classes that carry usage examples.

Commands and groups built with ``examples=`` gain an eager
``--examples`` flag that prints those examples and exits. ``--help``
stays short; the examples are one flag away.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds the ``--examples`` parameter when examples were given."""

    examples: str | None

    def _init_examples(self, examples: str | None) -> None:
        self.examples = examples.rstrip() if examples else None

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params.append(self._examples_option())
        return params

    def _examples_option(self) -> click.Option:
        text = self.examples

        def show(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
            if value and not ctx.resilient_parsing:
                click.echo(f"Examples for '{ctx.command_path}':\n\n{text}")
                ctx.exit(0)

        return click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show,
            help="Show usage examples and exit.",
        )


class LineageCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class LineageGroup(_ExamplesMixin, click.Group):
    """Group whose ``@group.command()`` subcommands are :class:`LineageCommand`."""

    command_class = LineageCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
