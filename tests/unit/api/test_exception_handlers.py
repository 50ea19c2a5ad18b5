"""Tests for the domain exception to HTTP status mapping."""

import json

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.exc import OperationalError

from discogs_radio.api.exception_handlers import (
    _sanitize_validation_errors,
    register_exception_handlers,
)
from discogs_radio.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CSVImportError,
    EntityNotFoundException,
    ExternalServiceError,
    QuotaExceededError,
)


def app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom() -> None:
        raise exc

    return app


async def get_boom(exc: Exception) -> httpx.Response:
    transport = httpx.ASGITransport(app=app_raising(exc))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/boom")


class TestStatusMapping:
    """Each domain error lands on its status code with a detail message."""

    @pytest.mark.parametrize(
        ("exc", "status_code"),
        [
            (CSVImportError("bad csv"), 422),
            (EntityNotFoundException("Track", "x"), 404),
            (ConfigurationError("no edge url"), 503),
            (AuthenticationError("token rejected"), 401),
            (ExternalServiceError("edge down", service="edge"), 502),
            (QuotaExceededError("quota gone", service="youtube"), 429),
            (json.JSONDecodeError("Expecting value", "", 0), 400),
        ],
    )
    async def test_mapping(self, exc: Exception, status_code: int) -> None:
        response = await get_boom(exc)

        assert response.status_code == status_code
        assert response.json()["detail"]

    async def test_quota_is_flagged(self) -> None:
        response = await get_boom(QuotaExceededError("quota gone"))

        assert response.json() == {"detail": "quota gone", "quota_exceeded": True}

    async def test_locked_database_asks_for_retry(self) -> None:
        exc = OperationalError("UPDATE", {}, Exception("database is locked"))

        response = await get_boom(exc)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "3"

    async def test_other_database_errors_are_500(self) -> None:
        exc = OperationalError("UPDATE", {}, Exception("no such table: track_media"))

        response = await get_boom(exc)

        assert response.status_code == 500
        assert response.json() == {"detail": "Database error"}


class TestSanitizeValidationErrors:
    """Raw bodies inside pydantic errors become strings."""

    def test_bytes_are_decoded(self) -> None:
        errors = [{"loc": ("body",), "input": b"caf\xc3\xa9", "ctx": {"raw": [b"\xff"]}}]

        sanitized = _sanitize_validation_errors(errors)

        assert sanitized[0]["input"] == "café"
        assert sanitized[0]["ctx"]["raw"] == ["ÿ"]
        assert sanitized[0]["loc"] == ("body",)
