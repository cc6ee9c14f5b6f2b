"""Rate limit key selection for the shared SlowAPI limiter."""

from fastapi import Request
from slowapi.util import get_remote_address

from mwarex.config import settings


def key_auth_or_ip(request: Request) -> str:
    """Bucket by session credential when one is presented, else by client address.

    Order: bearer header, legacy ``token`` header, auth cookie, remote IP.
    """
    bearer = request.headers.get("Authorization")
    if bearer:
        return f"bearer:{bearer.removeprefix('Bearer ').strip()}"

    legacy = request.headers.get("token")
    if legacy:
        return f"token:{legacy}"

    cookie = request.cookies.get(settings.auth_cookie_name)
    if cookie:
        return f"cookie:{cookie}"

    return f"ip:{get_remote_address(request)}"
