"""YouTube OAuth helper commands."""

from __future__ import annotations

import anyio
import click

from mwarex.cli.ui import console


@click.group()
def youtube() -> None:
    """Connect a YouTube channel from the terminal."""


@youtube.command("auth-url")
def youtube_auth_url() -> None:
    """Print the Google consent URL."""
    from mwarex.publishing.oauth import build_consent_url

    try:
        console.print(build_consent_url(), soft_wrap=True)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


@youtube.command("exchange")
@click.argument("code")
def youtube_exchange(code: str) -> None:
    """Exchange an authorization CODE and print the refresh token."""
    from mwarex.publishing.oauth import exchange_code_async

    try:
        tokens = anyio.run(exchange_code_async, code)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    if not tokens.refresh_token:
        raise click.ClickException(
            "Google did not return a refresh token; revoke access and retry."
        )
    console.print(f"YOUTUBE_REFRESH_TOKEN={tokens.refresh_token}")


def register(cli: click.Group) -> None:
    cli.add_command(youtube)
