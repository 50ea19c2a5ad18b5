"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from discogs_radio import __version__

router = APIRouter()


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="Overall status: healthy, degraded, unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(default=__version__, description="Application version")
    checks: dict[str, Any] = Field(
        default_factory=dict, description="Individual component checks"
    )


class LivenessStatus(BaseModel):
    status: str = Field(description="alive or dead")
    timestamp: str = Field(description="ISO timestamp")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Process is up, no dependency checks."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


# Hey future me - the database only holds caches, so losing it degrades resolution (no saved
# links, no cover table) but playback keeps working. That's "degraded", not "unhealthy".
# Unhealthy means the radio session itself never came up.
@router.get("", response_model=HealthStatus)
async def health_check(request: Request) -> JSONResponse:
    """Session, database and verifier status. 503 only when the session is missing."""
    checks: dict[str, Any] = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = {"status": "error", "error": "Not initialized"}
    else:
        try:
            async with db.session_scope() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = {"status": "ok"}
        except SQLAlchemyError as e:
            checks["database"] = {"status": "error", "error": str(e)[:200]}

    radio = getattr(request.app.state, "session", None)
    checks["session"] = (
        {"status": "ok", "tracks": len(radio.store)}
        if radio is not None
        else {"status": "error", "error": "Not initialized"}
    )

    verifier = getattr(request.app.state, "verifier", None)
    if verifier is not None:
        stats = verifier.get_stats()
        checks["verifier"] = {"status": "ok" if stats["running"] else "stopped"}

    if radio is None:
        overall = "unhealthy"
    elif checks["database"]["status"] != "ok":
        overall = "degraded"
    else:
        overall = "healthy"

    response = HealthStatus(
        status=overall, timestamp=datetime.now(UTC).isoformat(), checks=checks
    )
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE if overall == "unhealthy" else status.HTTP_200_OK
    )
    return JSONResponse(content=response.model_dump(), status_code=status_code)
