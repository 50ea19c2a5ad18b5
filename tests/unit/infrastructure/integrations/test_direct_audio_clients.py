"""Tests for the direct-audio extraction backends."""

import httpx

from discogs_radio.infrastructure.integrations.direct_audio_clients import (
    InvidiousAudioBackend,
    YtDlpAudioBackend,
)


async def test_ytdlp_extracts(edge) -> None:
    edge.responder = lambda function, body: httpx.Response(
        200,
        json={"success": True, "audioUrl": "https://cdn/audio.m4a", "title": "T", "author": "A"},
    )
    audio = await YtDlpAudioBackend(edge.client()).extract("abcdefghijk")
    assert audio.audio_url == "https://cdn/audio.m4a"
    assert audio.source == "yt-dlp"
    assert audio.author == "A"
    assert str(edge.requests[0].url).endswith("/yt-dlp-audio")
    assert edge.last_body == {"videoId": "abcdefghijk"}


async def test_unsuccessful_payload_is_none(edge) -> None:
    edge.responder = lambda function, body: httpx.Response(
        200, json={"success": False, "error": "Sign in to confirm"}
    )
    assert await InvidiousAudioBackend(edge.client()).extract("abcdefghijk") is None
    assert str(edge.requests[0].url).endswith("/invidious-audio")
