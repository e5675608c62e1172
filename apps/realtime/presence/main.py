"""Presence companion FastAPI application entrypoint."""
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api.ingest import router as ingest_router
from .api.stream import router as stream_router
from .core.events import EventBus
from .core.presence import TypingPresence
from .util.config import PresenceSettings


def create_app(settings: Optional[PresenceSettings] = None) -> FastAPI:
    """Build the application with its own event bus."""

    settings = settings or PresenceSettings.from_env()
    application = FastAPI(title="Presence Companion", version="0.1.0")
    application.state.settings = settings
    application.state.bus = EventBus()
    application.state.presence = TypingPresence(application.state.bus, settings)

    application.include_router(ingest_router, prefix="/api")
    application.include_router(stream_router, prefix="/api")

    @application.get("/healthz")
    def healthcheck() -> dict[str, str]:
        """Basic health endpoint for readiness probes."""
        return {"status": "ok"}

    return application


app = create_app()
