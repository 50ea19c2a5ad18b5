"""Provider resolvers.

Each resolver is an independent async lookup that returns a candidate or nothing. None of them
raise for "not found".
"""

from discogs_radio.application.services.resolvers.cover_art import (
    CoverArtService,
    needs_cover,
)
from discogs_radio.application.services.resolvers.direct_audio import DirectAudioResolver
from discogs_radio.application.services.resolvers.discogs_videos import DiscogsVideoResolver
from discogs_radio.application.services.resolvers.release_fetcher import (
    CachedReleaseFetcher,
)
from discogs_radio.application.services.resolvers.saved_media import (
    SavedMediaResolver,
    select_saved_media,
)
from discogs_radio.application.services.resolvers.youtube_search import (
    YouTubeSearchResolver,
)

__all__ = [
    "CachedReleaseFetcher",
    "CoverArtService",
    "DirectAudioResolver",
    "DiscogsVideoResolver",
    "SavedMediaResolver",
    "YouTubeSearchResolver",
    "needs_cover",
    "select_saved_media",
]
