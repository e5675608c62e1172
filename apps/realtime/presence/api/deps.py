"""Request-scoped access to the application's presence registry."""
from __future__ import annotations

from fastapi import Request

from ..core.presence import TypingPresence
from ..util.config import PresenceSettings


def get_presence(request: Request) -> TypingPresence:
    return request.app.state.presence


def get_settings(request: Request) -> PresenceSettings:
    return request.app.state.settings
