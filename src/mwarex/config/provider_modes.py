"""Effective provider modes for YouTube publishing and invite email.

Each provider is configured as ``real``, ``fake`` or ``off``. The
``use_fake_providers`` switch turns every ``real`` provider into ``fake`` for
local runs; it never re-enables a provider that is ``off``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from mwarex.config.settings import Settings

ProviderMode = Literal["real", "fake", "off"]

_MODES = ("real", "fake", "off")


def resolve_mode(configured: str, *, use_fake_providers: bool) -> ProviderMode:
    """Unknown values count as ``real`` so a typo never silently fakes production."""
    mode = configured.lower() if isinstance(configured, str) else "real"
    if mode not in _MODES:
        mode = "real"
    if use_fake_providers and mode == "real":
        return "fake"
    return mode  # type: ignore[return-value]


def effective_youtube_provider(settings: "Settings") -> ProviderMode:
    return resolve_mode(settings.youtube_provider, use_fake_providers=settings.use_fake_providers)


def effective_email_provider(settings: "Settings") -> ProviderMode:
    return resolve_mode(settings.email_provider, use_fake_providers=settings.use_fake_providers)
