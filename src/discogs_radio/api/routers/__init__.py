"""API router initialization."""

# Yo, this collects every sub-router; main.py mounts api_router under /api, so the player state
# ends up at /api/player/state, the CSV upload at /api/library/import/{source} and so on.

from fastapi import APIRouter

from discogs_radio.api.routers import health, library, player, resolve, workers

api_router = APIRouter()

api_router.include_router(player.router, prefix="/player", tags=["Player"])
api_router.include_router(library.router, prefix="/library", tags=["Library"])
api_router.include_router(resolve.router, prefix="/resolve", tags=["Resolve"])
api_router.include_router(workers.router, prefix="/workers", tags=["Workers"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])

__all__ = ["api_router"]
