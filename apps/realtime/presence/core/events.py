"""In-memory event bus for SSE streaming."""
from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class Subscriber(Protocol):
    """Anything that can take delivery of a bus event."""

    def deliver(self, event: Any) -> None: ...


class BufferSubscriber:
    """Subscriber that records every delivered event in order."""

    def __init__(self) -> None:
        self.events: list[Any] = []

    def deliver(self, event: Any) -> None:
        self.events.append(event)


class Subscription:
    """Unsubscribe handle returned by :meth:`EventBus.subscribe`.

    Calling it removes exactly one subscriber from exactly one channel. Only
    the first call has an effect.
    """

    __slots__ = ("_bus", "_channel_key", "_subscriber", "_active")

    def __init__(self, bus: EventBus, channel_key: str, subscriber: Subscriber) -> None:
        self._bus = bus
        self._channel_key = channel_key
        self._subscriber = subscriber
        self._active = True

    @property
    def channel_key(self) -> str:
        return self._channel_key

    @property
    def active(self) -> bool:
        return self._active

    def __call__(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bus._remove(self)


class EventBus:
    """Channel-keyed pub/sub fan-out with synchronous dispatch.

    Each channel maps a subscriber to its live handle. Dict order keeps
    delivery in subscription order, and a subscriber registered twice shares
    one handle. Nothing here awaits, so subscribe, unsubscribe and emit each
    run as one step on the event loop and need no lock.
    """

    def __init__(self) -> None:
        self._channels: dict[str, dict[Subscriber, Subscription]] = {}

    def subscribe(self, channel_key: str, subscriber: Subscriber) -> Subscription:
        subscribers = self._channels.setdefault(channel_key, {})
        handle = subscribers.get(subscriber)
        if handle is None:
            handle = Subscription(self, channel_key, subscriber)
            subscribers[subscriber] = handle
        return handle

    def emit(self, event: Any) -> int:
        """Deliver ``event`` to every subscriber of ``event.channel_key``.

        Returns the number of subscribers that accepted the event.
        """
        subscribers = self._channels.get(event.channel_key)
        if not subscribers:
            return 0
        delivered = 0
        for subscriber in list(subscribers):
            if self._deliver(subscriber, event):
                delivered += 1
        return delivered

    def subscriber_count(self, channel_key: str) -> int:
        return len(self._channels.get(channel_key, ()))

    def has_subscriber(self, channel_key: str, subscriber: Subscriber) -> bool:
        return subscriber in self._channels.get(channel_key, ())

    def channels(self) -> Iterator[str]:
        return (key for key, subscribers in list(self._channels.items()) if subscribers)

    def _remove(self, handle: Subscription) -> None:
        subscribers = self._channels.get(handle.channel_key)
        if subscribers is not None and subscribers.get(handle._subscriber) is handle:
            del subscribers[handle._subscriber]

    @staticmethod
    def _deliver(subscriber: Subscriber, event: Any) -> bool:
        try:
            subscriber.deliver(event)
        except Exception:
            logger.warning(
                "typing_delivery_failed",
                channel=event.channel_key,
                subscriber=type(subscriber).__name__,
                exc_info=True,
            )
            return False
        return True
