"""Typing-indicator events on top of the event bus."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from ..util.config import PresenceSettings
from .events import EventBus, Subscriber, Subscription

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class TypingEvent:
    """One typing notification for a channel."""

    channel_key: str
    user: str
    typing: bool
    timestamp: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "channelKey": self.channel_key,
            "user": self.user,
            "typing": self.typing,
            "timestamp": self.timestamp,
        }


class TypingPresence:
    """Publishes and subscribes typing events for chat channels."""

    def __init__(
        self,
        bus: EventBus,
        settings: PresenceSettings,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._bus = bus
        self._settings = settings
        self._clock = clock

    @property
    def default_channel(self) -> str:
        return self._settings.default_channel

    def resolve_channel(self, channel_key: Optional[str]) -> str:
        if isinstance(channel_key, str) and channel_key.strip():
            return channel_key
        return self._settings.default_channel

    def publish_typing(
        self,
        channel_key: Optional[str] = None,
        user: Optional[str] = None,
        typing: Optional[bool] = None,
    ) -> TypingEvent:
        event = TypingEvent(
            channel_key=self.resolve_channel(channel_key),
            user=user if isinstance(user, str) and user.strip() else self._settings.default_user,
            typing=typing is True,
            timestamp=self._clock(),
        )
        delivered = self._bus.emit(event)
        logger.debug(
            "typing_published",
            channel=event.channel_key,
            user=event.user,
            typing=event.typing,
            delivered=delivered,
        )
        return event

    def subscribe_typing(self, channel_key: str, subscriber: Subscriber) -> Subscription:
        return self._bus.subscribe(channel_key, subscriber)

    def listeners(self, channel_key: str) -> int:
        return self._bus.subscriber_count(channel_key)
