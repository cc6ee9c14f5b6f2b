"""FastAPI application for the MwareX API."""

from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable
from uuid import uuid4

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from mwarex.api import routes
from mwarex.api.errors import DomainError, to_http_exception
from mwarex.api.routes.metrics import observe_request
from mwarex.api.routes.users import limiter
from mwarex.app_version import get_app_version
from mwarex.config import settings
from mwarex.config.provider_modes import effective_email_provider, effective_youtube_provider
from mwarex.observability.logging import logger, request_id_var
from mwarex.storage.database import init_async_db, shutdown_async_db
from mwarex.storage.files import PUBLIC_PREFIX, upload_root


def _should_init_sentry() -> bool:
    """Sentry only outside tests, and only with a DSN."""
    if not settings.sentry_dsn or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    return os.getenv("DISABLE_SENTRY", "").lower() not in ("1", "true", "yes")


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = (exc.headers or {}).get("Retry-After") or "60"
    logger.warning(
        "rate_limit_exceeded",
        path=str(request.url.path),
        method=request.method,
        limit=exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limited",
            "detail": f"Too many requests. Retry after {retry_after} seconds.",
            "retry_after_seconds": int(retry_after) if str(retry_after).isdigit() else retry_after,
            "limit": exc.detail,
        },
        headers=exc.headers or {"Retry-After": str(retry_after)},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Logging, Sentry, tables and the upload directory; engines are disposed on exit."""
    from mwarex.observability import init_observability

    init_observability()
    logger.info(
        "api_starting",
        version=get_app_version(),
        environment=settings.environment,
        youtube_provider=effective_youtube_provider(settings),
        email_provider=effective_email_provider(settings),
    )

    if _should_init_sentry():
        try:
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                environment=settings.environment,
                traces_sample_rate=0.1,
                shutdown_timeout=0,
            )
        except Exception as exc:  # tolerates invalid DSN in dev
            logger.warning("sentry_init_skipped", error=str(exc))

    try:
        await init_async_db()
        app.state.database_ready = True
    except Exception as exc:
        logger.error("database_init_failed", error=str(exc))
        app.state.database_ready = False
        if settings.fail_fast_on_startup:
            raise

    upload_root()

    yield

    logger.info("api_shutting_down")
    await shutdown_async_db()


app = FastAPI(
    title="MwareX API",
    description="Creator and editor collaboration backend with YouTube publishing",
    version=get_app_version(),
    lifespan=lifespan,
)

# Session cookies travel cross-origin, so origins are an explicit allowlist.
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


@app.middleware("http")
async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind X-Request-ID for logs, echo it back, and record request metrics."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    token = request_id_var.set(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        try:
            observe_request(request, response.status_code, elapsed)
        except Exception as metrics_exc:  # pragma: no cover - metrics never break requests
            logger.debug("metrics_observe_failed", error=str(metrics_exc))
        logger.info(
            "request_complete",
            path=str(request.url.path),
            method=request.method,
            status=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time-ms"] = f"{elapsed * 1000:.2f}"
    return response


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return consistent error envelope."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error", "http_error")
        detail = detail.get("detail", detail)
    else:
        error_code = "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error_code,
            "detail": detail,
        },
        headers=exc.headers,
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("domain_error", error=exc.error, detail=str(exc), path=request.url.path)
    http_exc = to_http_exception(exc)
    return await http_exception_handler(request, http_exc)


# Include routers
app.include_router(routes.health.router)  # Health check is public (for Docker/K8s)
app.include_router(routes.users.router)
app.include_router(routes.admin.router)
app.include_router(routes.invites.router)
app.include_router(routes.rooms.router)
app.include_router(routes.videos.router)
app.include_router(routes.google_auth.router)
app.include_router(routes.feedback.router)
app.include_router(routes.metrics.router)

app.mount(
    PUBLIC_PREFIX.rstrip("/"),
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


__all__ = ["app", "limiter"]
