"""List command for the zotnotes CLI."""

from __future__ import annotations

import click

from ..formatting.metadata import extract_citekey, item_title
from ..storage import Storage, StorageError
from ._common import ZotnotesCliError, get_app


@click.command(name="ls")
@click.option("-n", "--limit", type=int, default=20, help="Maximum items to list")
@click.pass_context
def ls(ctx: click.Context, limit: int) -> None:
    """List Zotero items that carry PDF or EPUB annotations."""

    app = get_app(ctx)
    storage: Storage = app.storage

    try:
        rows = storage.list_annotated_items(limit=limit)
    except StorageError as exc:
        raise ZotnotesCliError(str(exc)) from exc

    for item, count in rows:
        citekey = extract_citekey(item.fields.get("extra"))
        suffix = f"  [@{citekey}]" if citekey else ""
        click.echo(f"{item.key}  {count:>4}  {item_title(item)}{suffix}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(ls)
