"""Edge function RPC client.

Hey future me - every remote resolver service (youtube-search, yt-dlp-audio, invidious-audio,
discogs-api, discogs-public) is an opaque JSON-in / JSON-out POST endpoint under one base URL.
This class does the HTTP part and turns transport problems into domain exceptions, the
service-specific clients next to it only shape bodies and parse responses.
"""

import logging
from typing import Any

import httpx

from discogs_radio.config.settings import EdgeFunctionSettings
from discogs_radio.domain.exceptions import AuthenticationError, ExternalServiceError
from discogs_radio.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)


class EdgeFunctionError(ExternalServiceError):
    """Non-2xx response from an edge function, with the body text for inspection."""

    def __init__(self, function: str, status_code: int, body: str) -> None:
        super().__init__(
            f"{function} failed with HTTP {status_code}: {body[:200]}",
            service=function,
            status_code=status_code,
        )
        self.body = body


class EdgeFunctionClient:
    """POSTs JSON bodies to ``{base_url}/{function}``."""

    def __init__(
        self,
        settings: EdgeFunctionSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = settings.base_url.rstrip("/")
        self._api_key = settings.api_key
        self._timeout = settings.timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HttpClientPool.get_client(timeout=self._timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
            headers["apikey"] = self._api_key
        return headers

    async def invoke(self, function: str, body: dict[str, Any]) -> dict[str, Any]:
        """Call one function and return its decoded JSON object.

        Raises:
            AuthenticationError: HTTP 401
            EdgeFunctionError: any other non-2xx status
            ExternalServiceError: transport failure or a non-object response
        """
        client = await self._get_client()
        url = f"{self._base_url}/{function}"
        try:
            response = await client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"{function} request failed: {e}", service=function
            ) from e

        if response.status_code == 401:
            raise AuthenticationError(f"{function} rejected the credentials")
        if response.status_code >= 400:
            raise EdgeFunctionError(function, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                f"{function} returned invalid JSON", service=function
            ) from e
        if not isinstance(data, dict):
            raise ExternalServiceError(
                f"{function} returned {type(data).__name__}, expected an object",
                service=function,
            )
        return data
