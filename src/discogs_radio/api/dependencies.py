"""Dependency injection for API endpoints."""

from typing import cast

from fastapi import Depends, HTTPException, Request

from discogs_radio.application.services.playback_session import PlaybackSession
from discogs_radio.application.services.radio_session import RadioSession
from discogs_radio.application.workers import BackgroundVerifierWorker


# Hey future me, the radio session is built once in lifecycle.lifespan() and parked on
# app.state. If it's missing, startup failed or is still running, so answer 503 instead of
# an AttributeError 500.
def get_radio_session(request: Request) -> RadioSession:
    """Get the radio session from app state.

    Raises:
        HTTPException: 503 if the session is not initialized
    """
    if not hasattr(request.app.state, "session"):
        raise HTTPException(status_code=503, detail="Radio session not initialized")
    return cast(RadioSession, request.app.state.session)


def get_playback(session: RadioSession = Depends(get_radio_session)) -> PlaybackSession:
    return session.playback


def get_verifier(request: Request) -> BackgroundVerifierWorker | None:
    return cast(BackgroundVerifierWorker | None, getattr(request.app.state, "verifier", None))

