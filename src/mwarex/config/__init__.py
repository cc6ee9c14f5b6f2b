"""MwareX configuration module."""

from mwarex.config.provider_modes import (
    ProviderMode,
    effective_email_provider,
    effective_youtube_provider,
)
from mwarex.config.settings import Settings, get_settings, reset_settings_cache, settings

__all__ = [
    "settings",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    "ProviderMode",
    "effective_email_provider",
    "effective_youtube_provider",
]
