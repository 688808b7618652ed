"""Config command for the zotnotes CLI."""

from __future__ import annotations

from pathlib import Path

import click

from ..config import DEFAULT_CONFIG_PATH, bootstrap_config_file
from ._common import ZotnotesCliError


@click.command(name="config")
@click.option(
    "--path-only",
    is_flag=True,
    help="Create the file if needed and print its path without opening it.",
)
@click.pass_context
def config(ctx: click.Context, path_only: bool) -> None:
    """Open the zotnotes configuration file in the editor."""

    selected_path: Path | None = ctx.obj.get("config_path")
    config_path = selected_path or DEFAULT_CONFIG_PATH

    try:
        created = bootstrap_config_file(config_path)
    except OSError as exc:
        raise ZotnotesCliError(f"Cannot create {config_path}: {exc}") from exc

    if created:
        click.echo(f"Created configuration at {config_path}")

    if path_only:
        click.echo(str(config_path))
        return

    try:
        result = click.edit(filename=str(config_path))
    except click.ClickException as exc:
        raise ZotnotesCliError(f"Failed to launch editor: {exc}") from exc

    if result is None:
        click.echo(f"Opened configuration at {config_path}")


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(config)
