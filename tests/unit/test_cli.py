"""CLI smoke tests."""

from __future__ import annotations

from click.testing import CliRunner

from mwarex.app_version import get_app_version
from mwarex.cli.main import cli


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert get_app_version() in result.output

    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert result.output.strip() == get_app_version()


def test_config_show_lists_provider_modes() -> None:
    result = CliRunner().invoke(cli, ["config", "show"])
    assert result.exit_code == 0, result.output
    assert "YouTube Provider" in result.output
    assert "fake" in result.output


def test_youtube_auth_url() -> None:
    result = CliRunner().invoke(cli, ["youtube", "auth-url"])
    assert result.exit_code == 0, result.output
    assert "accounts.google.com" in result.output


def test_youtube_auth_url_without_client(monkeypatch) -> None:
    from mwarex.config import settings

    monkeypatch.setattr(settings, "google_client_id", "")
    result = CliRunner().invoke(cli, ["youtube", "auth-url"])
    assert result.exit_code != 0
    assert "not configured" in result.output
