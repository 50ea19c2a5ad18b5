"""youtube-search edge function client."""

import logging
import re
from typing import Any

from discogs_radio.domain.entities import YouTubeSearchResult, YouTubeVideo
from discogs_radio.domain.exceptions import QuotaExceededError
from discogs_radio.domain.ports import IYouTubeSearchClient
from discogs_radio.infrastructure.integrations.edge_functions import (
    EdgeFunctionClient,
    EdgeFunctionError,
)

logger = logging.getLogger(__name__)

FUNCTION_NAME = "youtube-search"

# Hey future me - the edge function wraps the YouTube Data API and its quota failures show up in
# several shapes: HTTP 429, a 403 passed through in the error text, or Google's own reason
# strings. All of them mean "stop searching for today".
QUOTA_PATTERN = re.compile(
    r"quota_exceeded|quotaExceeded|dailyLimitExceeded|exceeded.*quota|youtube api search error:\s*403",
    re.IGNORECASE,
)


def is_quota_error(status_code: int | None, message: str) -> bool:
    return status_code == 429 or bool(QUOTA_PATTERN.search(message or ""))


def _parse_video(item: dict[str, Any]) -> YouTubeVideo | None:
    video_id = item.get("videoId") or item.get("id")
    if not video_id:
        return None
    return YouTubeVideo(
        video_id=str(video_id),
        title=item.get("title") or "",
        channel_title=item.get("channelTitle") or "",
        thumbnail=item.get("thumbnail") or "",
        duration_iso=item.get("durationIso") or "",
    )


class YouTubeSearchClient(IYouTubeSearchClient):
    """Searches YouTube through the edge function (embeddable results only)."""

    def __init__(self, edge: EdgeFunctionClient) -> None:
        self._edge = edge

    async def search(
        self,
        query: str,
        max_results: int,
        artist: str,
        title: str,
        refresh: bool = False,
    ) -> YouTubeSearchResult:
        body = {
            "query": query,
            "maxResults": max_results,
            "artist": artist,
            "title": title,
            "refresh": refresh,
        }
        try:
            data = await self._edge.invoke(FUNCTION_NAME, body)
        except EdgeFunctionError as e:
            if is_quota_error(e.status_code, e.body):
                raise QuotaExceededError(
                    "YouTube search quota exceeded", service=FUNCTION_NAME, status_code=e.status_code
                ) from e
            raise

        # Quota is also reported as a 200 with an error payload
        error = data.get("error")
        if error:
            if error == "quota_exceeded" or is_quota_error(None, str(error)):
                return YouTubeSearchResult(quota_exceeded=True)
            logger.warning("youtube-search returned an error payload: %s", error)

        videos = [
            video
            for video in (_parse_video(item) for item in data.get("videos") or [])
            if video is not None
        ]
        return YouTubeSearchResult(videos=videos, next_page_token=data.get("nextPageToken"))
