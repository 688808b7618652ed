"""Serve command: run the loopback HTTP API."""

from __future__ import annotations

import click
import uvicorn

from ..server import create_app
from ._common import get_app


@click.command(name="serve")
@click.option("--host", type=str, default=None, help="Interface to bind.")
@click.option("--port", type=int, default=None, help="Port to listen on.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve annotation exports over HTTP until interrupted."""

    app = get_app(ctx)
    bind_host = host or app.config.host
    bind_port = port or app.config.port

    url = f"http://{bind_host}:{bind_port}"
    click.echo(f"Serving {app.storage.path} on {url}", err=True)
    uvicorn.run(
        create_app(app.storage), host=bind_host, port=bind_port, log_config=None
    )


def register(cli: click.Group) -> None:
    """Register the command with the root CLI group."""

    cli.add_command(serve)
