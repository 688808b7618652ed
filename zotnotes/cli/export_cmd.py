"""Export command for the zotnotes CLI."""

from __future__ import annotations

from pathlib import Path

import click

from ..services.export import (
    ExportError,
    export_items,
    get_export_format_descriptions,
)
from ..storage import StorageError
from ._common import (
    ZotnotesCliError,
    collect_entries,
    get_app,
    identifier_options,
    resolve_dialect,
)


@click.command(name="export")
@identifier_options
@click.option(
    "-l",
    "--list-formats",
    "list_formats",
    is_flag=True,
    help="List available export formats and exit.",
)
@click.option(
    "-f",
    "--format",
    "export_format",
    type=str,
    required=False,
    metavar="FORMAT",
    help="Export format identifier (defaults to the configured format).",
)
@click.option(
    "-d",
    "--dest",
    "destination",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path("."),
    show_default=True,
    help="Destination directory for the exported files.",
)
@click.pass_context
def export(
    ctx: click.Context,
    keys: tuple[str, ...],
    citekeys: tuple[str, ...],
    list_formats: bool,
    export_format: str | None,
    destination: Path,
) -> None:
    """Write one annotation file per Zotero item KEY."""

    if list_formats:
        try:
            descriptions = get_export_format_descriptions()
        except ExportError as exc:
            raise ZotnotesCliError(str(exc)) from exc

        if not descriptions:
            click.echo("No export formats are available.")
        else:
            click.echo("Available export formats:\n")
            for fmt, desc in descriptions:
                if desc:
                    click.echo(f"  - {fmt}: {desc}")
                else:
                    click.echo(f"  - {fmt}")
        ctx.exit(0)

    if destination.exists() and destination.is_file():
        raise ZotnotesCliError("Destination must be a directory path.")

    app = get_app(ctx)
    dialect = resolve_dialect(app, export_format)
    entries, _ = collect_entries(app, keys, citekeys)

    try:
        written = export_items(app.exporter, entries, dialect, destination)
    except (ExportError, StorageError) as exc:
        raise ZotnotesCliError(str(exc)) from exc

    if not written:
        raise ZotnotesCliError("No annotations found for the requested items.")

    for path, count in written:
        click.echo(f"{path}  ({count} annotations)")
    total = sum(count for _, count in written)
    click.echo(f"Exported {total} annotations to {len(written)} files in {destination}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(export)
