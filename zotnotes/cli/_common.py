"""Shared helpers for zotnotes CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, TypeVar

import click

from ..app import AppContext, bootstrap
from ..config import ConfigError, MissingConfigError
from ..exporters import ExportError
from ..formatting.annotations import Dialect
from ..library import LibraryEntry
from ..services.export import get_dialect, resolve_items
from ..storage import StorageError

CONTEXT_SETTINGS: dict[str, Any] = {"help_option_names": ["-h", "--help"]}

F = TypeVar("F", bound=Callable[..., Any])


class ZotnotesCliError(click.ClickException):
    """Shared Click exception wrapper for CLI failures."""


def get_app(ctx: click.Context) -> AppContext:
    """Return a cached AppContext for the current CLI invocation."""

    app: AppContext | None = ctx.obj.get("app")
    if app is not None:
        return app

    config_path_opt: Path | None = ctx.obj.get("config_path")

    try:
        app = bootstrap(config_path_opt)
    except MissingConfigError as exc:
        raise ZotnotesCliError(
            "Configuration not found. Run 'zn config' once to set up zotnotes."
        ) from exc
    except (ConfigError, StorageError) as exc:
        raise ZotnotesCliError(str(exc)) from exc

    ctx.obj["app"] = app
    return app


def resolve_dialect(app: AppContext, export_format: str | None) -> Dialect:
    """Return the dialect for ``export_format`` or the configured default."""

    try:
        return get_dialect(export_format or app.config.default_format)
    except ExportError as exc:
        raise ZotnotesCliError(str(exc)) from exc


def identifier_options(func: F) -> F:
    """Attach the shared item-key argument and citekey option."""

    func = click.option(
        "-k",
        "--citekey",
        "citekeys",
        multiple=True,
        help="Select an item by citation key (repeatable).",
    )(func)
    return click.argument("keys", nargs=-1)(func)


def collect_entries(
    app: AppContext, keys: tuple[str, ...], citekeys: tuple[str, ...]
) -> tuple[list[LibraryEntry], list[str | None]]:
    """Resolve CLI identifiers, warning about the ones that match nothing."""

    if not keys and not citekeys:
        raise ZotnotesCliError("Provide at least one item key or --citekey.")

    try:
        entries, labels, missing = resolve_items(app.storage, keys, citekeys)
    except StorageError as exc:
        raise ZotnotesCliError(str(exc)) from exc

    for identifier in missing:
        click.echo(f"Warning: no Zotero item found for '{identifier}'", err=True)

    if not entries:
        raise ZotnotesCliError("None of the requested items were found.")
    return entries, labels
