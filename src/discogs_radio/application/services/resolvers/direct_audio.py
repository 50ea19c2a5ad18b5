"""Direct-audio resolver - bypasses embedded-player restrictions."""

import logging

from discogs_radio.domain.entities import DirectAudio
from discogs_radio.domain.exceptions import ExternalServiceError
from discogs_radio.domain.ports import IDirectAudioBackend

logger = logging.getLogger(__name__)


class DirectAudioResolver:
    """Tries each extraction backend in order (yt-dlp, then Invidious).

    None means every backend failed and the player should fall back to the embedded widget.
    Extracted URLs are short-lived signed links, so nothing is cached here.
    """

    def __init__(self, backends: list[IDirectAudioBackend]) -> None:
        self._backends = list(backends)

    async def resolve(self, youtube_id: str) -> DirectAudio | None:
        if not youtube_id:
            return None
        for backend in self._backends:
            try:
                audio = await backend.extract(youtube_id)
            except ExternalServiceError as e:
                logger.info("%s extraction failed for %s: %s", backend.name, youtube_id, e.message)
                continue
            if audio is not None and audio.audio_url:
                logger.debug("%s extracted audio for %s", backend.name, youtube_id)
                return audio
        logger.info("No direct audio for %s, falling back to embedded player", youtube_id)
        return None
