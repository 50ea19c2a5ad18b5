"""Remote service clients."""

from discogs_radio.infrastructure.integrations.direct_audio_clients import (
    InvidiousAudioBackend,
    YtDlpAudioBackend,
)
from discogs_radio.infrastructure.integrations.discogs_client import (
    DiscogsApiClient,
    DiscogsPublicClient,
)
from discogs_radio.infrastructure.integrations.edge_functions import (
    EdgeFunctionClient,
    EdgeFunctionError,
)
from discogs_radio.infrastructure.integrations.http_pool import HttpClientPool
from discogs_radio.infrastructure.integrations.youtube_search_client import (
    YouTubeSearchClient,
)

__all__ = [
    "DiscogsApiClient",
    "DiscogsPublicClient",
    "EdgeFunctionClient",
    "EdgeFunctionError",
    "HttpClientPool",
    "InvidiousAudioBackend",
    "YouTubeSearchClient",
    "YtDlpAudioBackend",
]
