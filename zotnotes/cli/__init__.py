"""zotnotes CLI package."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import click

from ..logging_config import configure_logging
from . import config_cmd, export_cmd, info, ls, serve, show
from ._common import CONTEXT_SETTINGS, ZotnotesCliError

__all__ = ["cli", "main", "ZotnotesCliError"]


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option(
    "-c",
    "--config",
    "config_path_opt",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to configuration TOML file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path_opt: Path | None, verbose: bool) -> None:
    """Export Zotero annotations to Org-mode and Markdown."""

    ctx.ensure_object(dict)
    invoked = ctx.invoked_subcommand

    if invoked is None:
        click.echo(ctx.command.get_help(ctx))
        ctx.exit(0)

    configure_logging(logging.WARNING, verbose=verbose)
    ctx.obj["config_path"] = config_path_opt


for register_command in (
    export_cmd.register,
    show.register,
    ls.register,
    info.register,
    config_cmd.register,
    serve.register,
):
    register_command(cli)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(argv) if argv is not None else None
    try:
        return cli.main(args=args, prog_name="zn", standalone_mode=False) or 0
    except click.ClickException as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except SystemExit as exc:
        return int(exc.code or 0)
