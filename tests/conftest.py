"""Pytest configuration and shared fixtures."""

import os
import sys
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest
import httpx

# Ensure source tree is importable without editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


def pytest_configure(config):
    """Configure pytest markers and environment for tests."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")

    # These MUST override any developer shell/.env values to keep the test run deterministic.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["USE_FAKE_PROVIDERS"] = "false"
    os.environ["YOUTUBE_PROVIDER"] = "fake"
    os.environ["EMAIL_PROVIDER"] = "fake"
    os.environ["YOUTUBE_REFRESH_TOKEN"] = ""
    os.environ["FAIL_FAST_ON_STARTUP"] = "false"
    os.environ["DISABLE_BACKGROUND_PUBLISH"] = "false"
    os.environ["AUTH_COOKIE_SECURE"] = "false"
    os.environ["BCRYPT_ROUNDS"] = "4"
    os.environ["FRONTEND_URL"] = "http://localhost:3000"
    os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
    os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
    os.environ["GOOGLE_REDIRECT"] = "http://localhost:8000/oauth2callback"
    os.environ["SENTRY_DSN"] = ""
    # Use a per-test-run temp directory for the SQLite DB and uploaded files.
    test_artifacts_root = Path(
        os.environ.get("MWAREX_TEST_ARTIFACTS_DIR") or (PROJECT_ROOT / ".tmp" / "pytest")
    )
    test_artifacts_root.mkdir(parents=True, exist_ok=True)
    run_dir = Path(tempfile.mkdtemp(prefix="run_", dir=str(test_artifacts_root)))
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{run_dir / 'test_default.db'}"
    os.environ["UPLOAD_DIR"] = str(run_dir / "uploads")


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch):
    """Fail the fast lane if code tries to hit the public internet.

    Allowlist only:
    - ASGI test host ("test") used with httpx.ASGITransport
    - localhost/loopback for local services
    """

    allowed_hosts = {"test", "testserver", "localhost", "127.0.0.1", "0.0.0.0"}

    async def _async_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = httpx.URL(url) if not isinstance(url, httpx.URL) else url
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return await _orig_async_request(self, method, url, *args, **kwargs)

    def _sync_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = httpx.URL(url) if not isinstance(url, httpx.URL) else url
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return _orig_sync_request(self, method, url, *args, **kwargs)

    _orig_async_request = httpx.AsyncClient.request
    _orig_sync_request = httpx.Client.request
    monkeypatch.setattr(httpx.AsyncClient, "request", _async_guard, raising=True)
    monkeypatch.setattr(httpx.Client, "request", _sync_guard, raising=True)

    yield


def pytest_sessionfinish(session, exitstatus):  # noqa: ARG001
    """Best-effort teardown for global DB engines."""
    try:
        import asyncio

        from mwarex.storage.database import shutdown_async_db

        asyncio.run(shutdown_async_db())
    except Exception:
        # Never fail the test run during teardown.
        return


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio tests on asyncio (SQLAlchemy/asyncio-based stack)."""
    return "asyncio"


def _reset_limiter() -> None:
    from mwarex.api.routes.users import limiter

    if hasattr(limiter, "_limiter") and limiter._limiter:
        storage = limiter._limiter.storage
        if hasattr(storage, "reset"):
            storage.reset()
        elif hasattr(storage, "storage"):
            storage.storage.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Reset rate limiter state between tests to avoid collision."""
    _reset_limiter()
    yield
    _reset_limiter()


@pytest.fixture(autouse=True)
def reset_fake_providers():
    """Fresh fake publisher/notifier per test so recorded calls don't leak."""
    from mwarex.notifications import mailer
    from mwarex.publishing import youtube

    youtube._fake_publisher = None
    mailer._notifier = None
    yield
    youtube._fake_publisher = None
    mailer._notifier = None


async def _reset_schema() -> None:
    from mwarex.storage.database import get_async_engine
    from mwarex.storage.models import Base

    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
async def db_ready():
    """Empty schema on the shared test database."""
    from mwarex.storage.database import init_async_db, shutdown_async_db

    await init_async_db()
    await _reset_schema()
    yield
    await shutdown_async_db()


@pytest.fixture
async def async_client():
    """httpx AsyncClient wired to the FastAPI app with lifespan enabled."""
    from httpx import ASGITransport, AsyncClient

    from mwarex.api.server import app

    async with app.router.lifespan_context(app):
        await _reset_schema()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


def _unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid4().hex[:10]}@example.com"


async def _register(
    client: httpx.AsyncClient,
    *,
    role: str = "creator",
    email: str | None = None,
    password: str = "secret-pass",
    name: str | None = None,
    creator_id: str | None = None,
) -> tuple[dict, dict[str, str]]:
    """Sign up and sign in through the API; returns (user, auth headers)."""
    email = email or _unique_email(role)
    body = {"email": email, "password": password, "name": name or role.title(), "role": role}
    if creator_id:
        body["creator_id"] = creator_id
    resp = await client.post("/api/v1/user/signup", json=body)
    assert resp.status_code == 201, resp.text

    resp = await client.post("/api/v1/user/signin", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    # Tests authenticate explicitly; drop the session cookie.
    client.cookies.clear()
    payload = resp.json()
    return payload["user"], {"Authorization": f"Bearer {payload['token']}"}


@pytest.fixture
def register():
    """Sign up + sign in helper: `user, headers = await register(async_client, role=...)`."""
    return _register


@pytest.fixture
def unique_email():
    return _unique_email
