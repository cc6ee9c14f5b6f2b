"""Health check endpoints."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from mwarex.api.schemas import HealthResponse
from mwarex.app_version import get_app_version
from mwarex.config import settings
from mwarex.config.provider_modes import effective_email_provider, effective_youtube_provider
from mwarex.observability.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)

_STARTED_AT = time.monotonic()


def _provider_modes() -> dict[str, str]:
    return {
        "youtube": effective_youtube_provider(settings),
        "email": effective_email_provider(settings),
    }


@router.get("/health", response_model=HealthResponse)
@router.get("/api/v1/health", response_model=HealthResponse, include_in_schema=False)
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness probe; degraded provider state is reported, not failed."""
    provider_modes = _provider_modes()
    return {
        "status": "ok",
        "version": get_app_version(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "degraded_mode": any(mode != "real" for mode in provider_modes.values()),
        "provider_modes": provider_modes,
        "database_ready": getattr(request.app.state, "database_ready", None),
    }


async def _migration_state() -> Dict[str, Any]:
    """Compare the database's Alembic revision with the newest script."""
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    from mwarex.paths import alembic_config
    from mwarex.storage.database import get_async_engine

    async with get_async_engine().connect() as conn:
        current = await conn.run_sync(
            lambda sync_conn: MigrationContext.configure(sync_conn).get_current_revision()
        )
    head = ScriptDirectory.from_config(alembic_config()).get_current_head()
    state: Dict[str, Any] = {
        "migration_current": current,
        "migration_head": head,
        "migrations_up_to_date": current == head,
    }
    if current != head:
        # Tables created by init_async_db carry no revision until `mwarex db upgrade`.
        state["migration_status"] = "migrations_pending"
    return state


@router.get("/health/db")
async def db_health_check() -> JSONResponse:
    """Readiness probe: 503 when the database is unreachable.

    Migration state is informational and never fails the probe.
    """
    from mwarex.storage.database import get_async_engine

    checks: Dict[str, Any] = {"database": "unknown"}
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("db_health_check_failed", error=str(exc))
        checks.update(database="unhealthy", database_error=str(exc))
        return JSONResponse(content=checks, status_code=503)
    checks["database"] = "healthy"

    try:
        checks.update(await _migration_state())
    except Exception as exc:
        logger.debug("migration_status_check_skipped", error=str(exc))
        checks["migration_status"] = "check_skipped"

    return JSONResponse(content=checks, status_code=200)


__all__ = ["router"]
