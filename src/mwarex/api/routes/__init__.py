"""API route modules."""

from mwarex.api.routes import (
    admin,
    feedback,
    google_auth,
    health,
    invites,
    metrics,
    rooms,
    users,
    videos,
)

__all__ = [
    "admin",
    "feedback",
    "google_auth",
    "health",
    "invites",
    "metrics",
    "rooms",
    "users",
    "videos",
]
