"""Structured logging and the decision audit trail.

Usage:
    from mwarex.observability import get_logger

    logger = get_logger(__name__)
    logger.info("video_approved", video_id=str(video.id))
"""

from __future__ import annotations

from mwarex.observability.logging import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger", "init_observability"]

_initialized = False


def init_observability() -> None:
    """Configure logging once per process.

    Importing ``mwarex`` never touches global logging; the API lifespan and the
    CLI call this explicitly.
    """
    global _initialized
    if _initialized:
        return
    from mwarex.config import settings

    configure_logging(settings.log_level, json=settings.environment != "development")
    _initialized = True
