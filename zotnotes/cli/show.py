"""Show command: print exported annotations to stdout."""

from __future__ import annotations

import click

from ..storage import StorageError
from ._common import (
    ZotnotesCliError,
    collect_entries,
    get_app,
    identifier_options,
    resolve_dialect,
)


@click.command(name="show")
@identifier_options
@click.option(
    "-f",
    "--format",
    "export_format",
    type=str,
    required=False,
    metavar="FORMAT",
    help="Export format identifier (defaults to the configured format).",
)
@click.pass_context
def show(
    ctx: click.Context,
    keys: tuple[str, ...],
    citekeys: tuple[str, ...],
    export_format: str | None,
) -> None:
    """Print the annotations of one or more items as a single document."""

    app = get_app(ctx)
    dialect = resolve_dialect(app, export_format)
    entries, labels = collect_entries(app, keys, citekeys)

    try:
        result = app.exporter.generate_batch_content(entries, dialect, labels)
    except StorageError as exc:
        raise ZotnotesCliError(str(exc)) from exc

    if result is None:
        raise ZotnotesCliError("No annotations found for the requested items.")

    click.echo(result.content, nl=False)
    click.echo(
        f"{result.total_annotations} annotations from {result.item_count} items",
        err=True,
    )


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(show)
