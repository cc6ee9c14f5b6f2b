"""`mwarex config`: inspect the effective configuration."""

from __future__ import annotations

from urllib.parse import urlsplit

import click
from rich.table import Table

from mwarex.cli.ui import console
from mwarex.config import settings
from mwarex.config.provider_modes import effective_email_provider, effective_youtube_provider


def _masked_database_url(url: str) -> str:
    """Drop credentials: ``postgresql+asyncpg://db:5432/mwarex``."""
    parts = urlsplit(url)
    if parts.password is None and parts.username is None:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return parts._replace(netloc=host).geturl()


def _configured(value: str) -> str:
    return "[green]configured[/green]" if value else "[red]missing[/red]"


@click.group()
def config() -> None:
    """Inspect configuration."""


@config.command("show")
def config_show() -> None:
    """Show the settings that decide how the API behaves."""
    rows = [
        ("Environment", settings.environment),
        ("Database", _masked_database_url(settings.database_url)),
        ("API", f"{settings.api_host}:{settings.api_port}"),
        ("Frontend URL", settings.frontend_url),
        ("CORS Origins", ", ".join(settings.cors_origins) or "-"),
        ("Upload Dir", settings.upload_dir),
        ("Max Upload", f"{settings.max_upload_bytes // (1024 * 1024)} MiB"),
        ("YouTube Provider", effective_youtube_provider(settings)),
        ("YouTube Privacy", settings.youtube_privacy_status),
        ("Google OAuth Client", _configured(settings.google_client_id)),
        ("Service Refresh Token", _configured(settings.youtube_refresh_token)),
        ("Email Provider", effective_email_provider(settings)),
        ("SMTP", f"{settings.smtp_host}:{settings.smtp_port}"),
        ("Auth Cookie", f"{settings.auth_cookie_name} (secure={settings.auth_cookie_secure})"),
        ("Auth Rate Limit", settings.auth_rate_limit),
    ]
    table = Table(title="MwareX Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for name, value in rows:
        table.add_row(name, str(value))
    console.print(table)


def register(cli: click.Group) -> None:
    cli.add_command(config)
