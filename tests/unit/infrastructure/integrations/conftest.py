"""Fixtures for the edge-function clients: an EdgeFunctionClient over httpx.MockTransport."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from discogs_radio.config.settings import EdgeFunctionSettings
from discogs_radio.infrastructure.integrations.edge_functions import EdgeFunctionClient

Responder = Callable[[str, dict[str, Any]], httpx.Response]


class RecordingEdge:
    """Builds an EdgeFunctionClient whose requests are answered by ``responder``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responder: Responder = lambda function, body: httpx.Response(200, json={})

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        function = request.url.path.rsplit("/", 1)[-1]
        return self.responder(function, json.loads(request.content or b"{}"))

    def client(self, api_key: str = "secret") -> EdgeFunctionClient:
        settings = EdgeFunctionSettings(base_url="https://edge.test/functions/v1/", api_key=api_key)
        http = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))
        return EdgeFunctionClient(settings, client=http)

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def edge() -> RecordingEdge:
    return RecordingEdge()
