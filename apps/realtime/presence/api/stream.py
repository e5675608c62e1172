"""Server-sent events endpoint for typing indicators."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from ..core.presence import TypingPresence
from ..core.stream import FRAME_SEP, CancellationToken, TypingStream
from ..models.presence import ChannelStats
from ..util.config import PresenceSettings
from .deps import get_presence, get_settings

router = APIRouter(tags=["typing"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
}


@router.get("/chat/typing/stream")
async def stream_typing(
    channel: Optional[str] = Query(None),
    presence: TypingPresence = Depends(get_presence),
    settings: PresenceSettings = Depends(get_settings),
) -> EventSourceResponse:
    """Subscribe to typing events for one channel."""

    token = CancellationToken()
    stream = TypingStream.open(
        presence,
        presence.resolve_channel(channel),
        token,
        keepalive_seconds=settings.keepalive_seconds,
        retry_ms=settings.retry_ms,
    )
    return EventSourceResponse(
        stream.frames(),
        headers=STREAM_HEADERS,
        ping=0,
        sep=FRAME_SEP,
        background=BackgroundTask(token.cancel),
    )


@router.get("/chat/typing/channels/{channel_key}", response_model=ChannelStats)
async def channel_stats(
    channel_key: str,
    presence: TypingPresence = Depends(get_presence),
) -> ChannelStats:
    return ChannelStats(channel_key=channel_key, subscribers=presence.listeners(channel_key))
