import pytest

from mwarex.config import settings


@pytest.mark.anyio
@pytest.mark.integration
async def test_signin_rate_limit_hits_after_threshold(
    async_client, register, monkeypatch: pytest.MonkeyPatch
):
    """Ensure the auth limiter returns 429 after a burst from one client."""
    user, _ = await register(async_client)
    # Tighten rate limit for the test so we hit the ceiling quickly.
    monkeypatch.setattr(settings, "auth_rate_limit", "3/minute")

    responses = []
    for _ in range(5):
        resp = await async_client.post(
            "/api/v1/user/signin", json={"email": user["email"], "password": "wrong-pass"}
        )
        responses.append(resp)

    status_codes = [r.status_code for r in responses]
    assert 429 in status_codes
    assert responses[0].status_code == 401
    limited = responses[status_codes.index(429)].json()
    assert limited["error"] == "rate_limited"
