"""Direct-audio extraction backends (yt-dlp and Invidious edge functions)."""

import logging

from discogs_radio.domain.entities import DirectAudio
from discogs_radio.domain.ports import IDirectAudioBackend
from discogs_radio.infrastructure.integrations.edge_functions import EdgeFunctionClient

logger = logging.getLogger(__name__)


class EdgeAudioBackend(IDirectAudioBackend):
    """Calls one ``{videoId} -> {success, audioUrl, title}`` extraction function."""

    function_name = ""

    def __init__(self, edge: EdgeFunctionClient) -> None:
        self._edge = edge

    async def extract(self, video_id: str) -> DirectAudio | None:
        data = await self._edge.invoke(self.function_name, {"videoId": video_id})
        audio_url = data.get("audioUrl")
        if not data.get("success") or not audio_url:
            logger.debug("%s could not extract %s: %s", self.name, video_id, data.get("error"))
            return None
        return DirectAudio(
            audio_url=audio_url,
            source=self.name,
            title=data.get("title"),
            author=data.get("author"),
        )


class YtDlpAudioBackend(EdgeAudioBackend):
    name = "yt-dlp"
    function_name = "yt-dlp-audio"


class InvidiousAudioBackend(EdgeAudioBackend):
    name = "invidious"
    function_name = "invidious-audio"
