"""Background worker status API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from discogs_radio.api.dependencies import get_radio_session
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.infrastructure.integrations import HttpClientPool

router = APIRouter()


class WorkerStatusInfo(BaseModel):
    """Status information for a single worker."""

    name: str = Field(description="Display name of the worker")
    running: bool = Field(description="Whether the worker loop is running")
    status: str = Field(description="Current status: idle, active or stopped")
    details: dict[str, Any] = Field(default_factory=dict, description="Worker counters")


class AllWorkersStatus(BaseModel):
    workers: dict[str, WorkerStatusInfo]
    session: dict[str, Any] = Field(default_factory=dict, description="Resolution stats")
    http_pool: dict[str, Any] = Field(default_factory=dict)


# Hey future me - no registry here on purpose, the two workers are read straight off the
# session. Add new workers to this function when they appear.
@router.get("/status", response_model=AllWorkersStatus)
async def get_all_workers_status(
    session: RadioSession = Depends(get_radio_session),
) -> AllWorkersStatus:
    verifier_stats = session.verifier.get_stats()
    cover_stats = session.cover_worker.get_stats()

    def _status(running: bool, active: bool) -> str:
        if not running:
            return "stopped"
        return "active" if active else "idle"

    return AllWorkersStatus(
        workers={
            "verifier": WorkerStatusInfo(
                name="Background verifier",
                running=verifier_stats["running"],
                status=_status(verifier_stats["running"], verifier_stats["processing"]),
                details=verifier_stats,
            ),
            "cover_art": WorkerStatusInfo(
                name="Cover art scraper",
                running=cover_stats["running"],
                status=_status(cover_stats["running"], cover_stats["running"]),
                details=cover_stats,
            ),
        },
        session=session.get_stats(),
        http_pool=HttpClientPool.get_pool_stats(),
    )
