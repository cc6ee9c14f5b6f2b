"""Database CLI commands."""

from __future__ import annotations

import click

from mwarex.cli.ui import console


@click.group()
def db() -> None:
    """Database schema management."""


@db.command("init")
def db_init() -> None:
    """Create any missing tables directly from the models."""
    import anyio

    from mwarex.storage.database import init_async_db, shutdown_async_db

    async def _create() -> None:
        try:
            await init_async_db()
        finally:
            await shutdown_async_db()

    try:
        anyio.run(_create)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Database tables ready[/green]")


@db.command("upgrade")
@click.argument("revision", default="head")
def db_upgrade(revision: str) -> None:
    """Apply Alembic migrations up to REVISION."""
    from alembic import command

    from mwarex.paths import alembic_config

    command.upgrade(alembic_config(), revision)
    console.print(f"[green]Migrated to {revision}[/green]")


def register(cli: click.Group) -> None:
    cli.add_command(db)
