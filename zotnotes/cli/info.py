"""Info command for the zotnotes CLI."""

from __future__ import annotations

import click

from ..config import ZotnotesConfig
from ..services.export import ExportError, get_export_format_choices
from ..storage import Storage, StorageError
from ._common import ZotnotesCliError, get_app


@click.command(name="info")
@click.pass_context
def info(ctx: click.Context) -> None:
    """Display database information and the current configuration."""

    app = get_app(ctx)
    config: ZotnotesConfig = app.config
    storage: Storage = app.storage

    try:
        total_items = storage.count_items()
        total_annotations = storage.count_annotations()
        formats = get_export_format_choices()
    except (StorageError, ExportError) as exc:
        raise ZotnotesCliError(str(exc)) from exc

    click.echo("zotnotes library info:\n")
    click.echo(f"  Database file : {storage.path}")
    click.echo(f"  Items         : {total_items}")
    click.echo(f"  Annotations   : {total_annotations}")
    click.echo(f"  Formats       : {', '.join(formats) if formats else '(none)'}")
    click.echo("\nConfiguration:\n")
    click.echo(_format_config(config))


def _format_config(config: ZotnotesConfig) -> str:
    def quote(value: object | None) -> str:
        if value is None:
            return '""'
        text = str(value)
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'

    lines = [
        "[zotnotes]",
        f"zotero_dir = {quote(config.zotero_dir)}",
        f"database = {quote(config.database)}",
        f"base_attachment_dir = {quote(config.base_attachment_dir)}",
        f"default_format = {quote(config.default_format)}",
        f"host = {quote(config.host)}",
        f"port = {config.port}",
    ]
    return "\n".join(lines)


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(info)
