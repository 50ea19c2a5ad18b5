"""Discogs clients over the discogs-api and discogs-public edge functions.

Hey future me - the OAuth dance happens elsewhere. We just forward the stored token pair and
username to the discogs-api function, which signs the real Discogs request. discogs-public
uses the app's consumer key and needs no user credentials (cover art only).
"""

import logging
from typing import Any

from discogs_radio.domain.entities import CoverArtRecord
from discogs_radio.domain.exceptions import AuthenticationError
from discogs_radio.domain.ports import ICoverArtSource, IDiscogsClient
from discogs_radio.infrastructure.integrations.edge_functions import (
    EdgeFunctionClient,
    EdgeFunctionError,
)

logger = logging.getLogger(__name__)


class DiscogsApiClient(IDiscogsClient):
    """Authenticated Discogs access for one user."""

    FUNCTION_NAME = "discogs-api"

    def __init__(
        self,
        edge: EdgeFunctionClient,
        username: str,
        access_token: str,
        access_token_secret: str,
    ) -> None:
        self._edge = edge
        self._username = username
        self._access_token = access_token
        self._access_token_secret = access_token_secret

    async def _call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self._access_token or not self._access_token_secret:
            raise AuthenticationError("Discogs credentials are missing")
        return await self._edge.invoke(
            self.FUNCTION_NAME,
            {
                "action": action,
                "username": self._username,
                "access_token": self._access_token,
                "access_token_secret": self._access_token_secret,
                "params": params,
            },
        )

    async def fetch_release(self, release_id: int) -> dict[str, Any] | None:
        try:
            data = await self._call("release", {"release_id": release_id})
        except EdgeFunctionError as e:
            if "404" in e.body or "not found" in e.body.lower():
                return None
            raise
        return data or None

    async def fetch_collection(self, page: int = 1, per_page: int = 50) -> dict[str, Any]:
        data = await self._call("collection", {"page": page, "per_page": per_page})
        logger.debug("Collection page %d: %d releases", page, len(data.get("releases") or []))
        return data

    async def fetch_wantlist(self, page: int = 1, per_page: int = 50) -> dict[str, Any]:
        data = await self._call("wantlist", {"page": page, "per_page": per_page})
        logger.debug("Wantlist page %d: %d wants", page, len(data.get("wants") or []))
        return data


class DiscogsPublicClient(ICoverArtSource):
    """Release cover lookup without user credentials."""

    FUNCTION_NAME = "discogs-public"

    def __init__(self, edge: EdgeFunctionClient) -> None:
        self._edge = edge

    async def fetch_cover(self, release_id: int) -> CoverArtRecord | None:
        try:
            data = await self._edge.invoke(self.FUNCTION_NAME, {"release_id": release_id})
        except EdgeFunctionError as e:
            if e.status_code == 404:
                return None
            raise
        cover_url = data.get("cover_image") or data.get("thumb")
        if not cover_url:
            return None
        return CoverArtRecord(
            release_id=release_id,
            cover_url=cover_url,
            thumb_url=data.get("thumb"),
        )
