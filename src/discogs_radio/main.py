"""FastAPI application factory and console entry point."""

import uvicorn
from fastapi import FastAPI

from discogs_radio import __version__
from discogs_radio.api.exception_handlers import register_exception_handlers
from discogs_radio.api.routers import api_router
from discogs_radio.config import get_settings
from discogs_radio.infrastructure.lifecycle import lifespan
from discogs_radio.infrastructure.observability import RequestLoggingMiddleware


def create_app() -> FastAPI:
    """Create the application. Startup wiring happens in the lifespan, not here."""
    settings = get_settings()
    app = FastAPI(
        title="Discogs Radio",
        version=__version__,
        description="Plays a Discogs collection by resolving tracks to YouTube or Bandcamp",
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.state.settings = settings
    return app


app = create_app()


def run() -> None:
    """Console script: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "discogs_radio.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
