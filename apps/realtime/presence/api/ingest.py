"""Typing event ingest endpoint."""
from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..core.presence import TypingPresence
from ..models.presence import IngestAck, TypingIngestRequest
from .deps import get_presence

logger = structlog.get_logger()

router = APIRouter(tags=["typing"])


async def _read_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return {}


@router.post("/chat/typing", response_model=IngestAck)
async def ingest_typing(
    request: Request,
    presence: TypingPresence = Depends(get_presence),
) -> IngestAck | JSONResponse:
    """Publish a typing notification to every open stream of its channel."""

    try:
        payload = TypingIngestRequest.from_body(await _read_body(request))
        presence.publish_typing(
            channel_key=payload.channel_key,
            user=payload.user,
            typing=payload.typing,
        )
    except Exception:
        logger.exception("typing_ingest_failed", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False},
        )
    return IngestAck(ok=True)
