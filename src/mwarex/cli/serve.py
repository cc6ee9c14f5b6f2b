"""API server command."""

from __future__ import annotations

import click

from mwarex.config import settings


@click.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", type=int, default=None, help="Port (defaults to API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "mwarex.api.server:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_config=None,
    )


def register(cli: click.Group) -> None:
    cli.add_command(serve)
