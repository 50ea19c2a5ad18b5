"""Background workers."""

from discogs_radio.application.workers.background_verifier import (
    BackgroundVerifierWorker,
    create_background_verifier_worker,
)
from discogs_radio.application.workers.cover_art_worker import CoverArtWorker

__all__ = [
    "BackgroundVerifierWorker",
    "CoverArtWorker",
    "create_background_verifier_worker",
]
