"""Health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from neriah import __version__
from neriah.api.database import get_session_factory

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "healthy", "version": __version__}


@router.get("/ready", response_model=None)
async def ready(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness check; covers the database and pipeline configuration."""
    checks: dict[str, str] = {}
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"

    pipeline = getattr(request.app.state, "pipeline_config", None)
    checks["pipeline"] = "ok" if pipeline is not None else "not configured"

    body = {"status": "ready", "checks": checks}
    if any(value != "ok" for value in checks.values()):
        body["status"] = "not_ready"
        return JSONResponse(status_code=503, content=body)
    return body
