"""Per-connection SSE transport for typing events."""
from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from enum import Enum
from typing import Callable, Optional

import structlog
from sse_starlette import ServerSentEvent

from .events import Subscription
from .presence import TypingEvent, TypingPresence

logger = structlog.get_logger()

FRAME_SEP = "\n"
TYPING_EVENT = "typing"
KEEPALIVE_COMMENT = "ping"

_CLOSED = object()


def encode_typing(event: TypingEvent) -> ServerSentEvent:
    return ServerSentEvent(
        json.dumps(event.to_wire(), separators=(",", ":")),
        event=TYPING_EVENT,
        sep=FRAME_SEP,
    )


def keepalive_frame() -> ServerSentEvent:
    return ServerSentEvent(comment=KEEPALIVE_COMMENT, sep=FRAME_SEP)


class CancellationToken:
    """Cancellation signal owned by one client connection.

    Callbacks run synchronously on the first :meth:`cancel`; callbacks added
    after that run immediately.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], None]) -> None:
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


class StreamState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class TypingStream:
    """One open SSE connection subscribed to one channel.

    The stream is itself the bus subscriber: :meth:`deliver` turns an event
    into a frame on the connection's outbound queue and :meth:`frames` drains
    that queue into the response, interleaving keep-alive comments.
    """

    def __init__(
        self,
        channel_key: str,
        token: CancellationToken,
        *,
        keepalive_seconds: float = 15.0,
        retry_ms: Optional[int] = None,
    ) -> None:
        self.channel_key = channel_key
        self.state = StreamState.OPEN
        self._token = token
        self._keepalive_seconds = keepalive_seconds
        self._retry_ms = retry_ms
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._subscription: Optional[Subscription] = None

    @classmethod
    def open(
        cls,
        presence: TypingPresence,
        channel_key: str,
        token: CancellationToken,
        *,
        keepalive_seconds: float = 15.0,
        retry_ms: Optional[int] = None,
    ) -> "TypingStream":
        stream = cls(
            channel_key,
            token,
            keepalive_seconds=keepalive_seconds,
            retry_ms=retry_ms,
        )
        stream._subscription = presence.subscribe_typing(channel_key, stream)
        logger.info("typing_stream_opened", channel=channel_key)
        token.add_callback(stream.close)
        return stream

    @property
    def closed(self) -> bool:
        return self.state is StreamState.CLOSED

    def deliver(self, event: TypingEvent) -> None:
        if self.closed:
            return
        self._queue.put_nowait(encode_typing(event))

    def close(self) -> None:
        if self.closed:
            return
        self.state = StreamState.CLOSED
        if self._subscription is not None:
            self._subscription()
        self._queue.put_nowait(_CLOSED)
        self._token.cancel()
        logger.info("typing_stream_closed", channel=self.channel_key)

    async def frames(self) -> AsyncIterator[ServerSentEvent]:
        try:
            if self._retry_ms is not None and not self.closed:
                yield ServerSentEvent(retry=self._retry_ms, sep=FRAME_SEP)
            while not self.closed:
                try:
                    frame = await asyncio.wait_for(
                        self._queue.get(), timeout=self._keepalive_seconds
                    )
                except asyncio.TimeoutError:
                    if not self.closed:
                        yield keepalive_frame()
                    continue
                if frame is _CLOSED:
                    break
                yield frame
        finally:
            # Client went away or the response finished; drop the subscription now.
            self._token.cancel()
