"""`mwarex` command-line entry point.

Each submodule under ``mwarex.cli`` defines a click group and attaches it with
``register(cli)``.
"""

from __future__ import annotations

import click

from mwarex.app_version import get_app_version
from mwarex.cli import config, db, serve, videos, youtube
from mwarex.observability import init_observability

COMMAND_MODULES = (config, db, serve, videos, youtube)


@click.group()
@click.version_option(version=get_app_version(), prog_name="mwarex")
def cli() -> None:
    """MwareX: creator/editor video approval and YouTube publishing."""
    init_observability()


@cli.command("version")
def version() -> None:
    """Print the installed version."""
    click.echo(get_app_version())


for _module in COMMAND_MODULES:
    _module.register(cli)


if __name__ == "__main__":
    cli()
