"""Tests for the channel-keyed event bus."""
from __future__ import annotations

import pytest

from ..core.events import BufferSubscriber, EventBus
from ..core.presence import TypingEvent


class ExplodingSubscriber:
    def __init__(self) -> None:
        self.calls = 0

    def deliver(self, event: TypingEvent) -> None:
        self.calls += 1
        raise RuntimeError("connection gone")


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


def _event(channel_key: str = "general", user: str = "alice", typing: bool = True, timestamp: int = 1000) -> TypingEvent:
    return TypingEvent(channel_key=channel_key, user=user, typing=typing, timestamp=timestamp)


def test_subscriber_receives_exact_event(bus: EventBus) -> None:
    handler = BufferSubscriber()
    bus.subscribe("general", handler)

    event = _event()
    assert bus.emit(event) == 1

    assert handler.events == [event]
    assert handler.events[0] is event


def test_emit_to_other_channel_is_not_delivered(bus: EventBus) -> None:
    handler = BufferSubscriber()
    bus.subscribe("room1", handler)

    assert bus.emit(_event(channel_key="room2")) == 0
    assert handler.events == []


def test_emit_without_subscribers_is_a_noop(bus: EventBus) -> None:
    assert bus.emit(_event(channel_key="nobody-here")) == 0
    assert list(bus.channels()) == []
    assert bus.subscriber_count("nobody-here") == 0


def test_unsubscribe_stops_delivery_for_that_subscriber_only(bus: EventBus) -> None:
    first = BufferSubscriber()
    second = BufferSubscriber()
    unsubscribe_first = bus.subscribe("general", first)
    bus.subscribe("general", second)

    bus.emit(_event(timestamp=1))
    unsubscribe_first()
    bus.emit(_event(timestamp=2))

    assert [e.timestamp for e in first.events] == [1]
    assert [e.timestamp for e in second.events] == [1, 2]


def test_unsubscribe_is_idempotent(bus: EventBus) -> None:
    handler = BufferSubscriber()
    other = BufferSubscriber()
    unsubscribe = bus.subscribe("general", handler)
    bus.subscribe("general", other)

    unsubscribe()
    unsubscribe()

    assert not unsubscribe.active
    assert bus.subscriber_count("general") == 1
    assert bus.has_subscriber("general", other)


def test_stale_handle_does_not_remove_later_registration(bus: EventBus) -> None:
    handler = BufferSubscriber()
    stale = bus.subscribe("general", handler)
    stale()
    bus.subscribe("general", handler)

    stale()

    assert bus.has_subscriber("general", handler)


def test_duplicate_subscribe_keeps_one_entry(bus: EventBus) -> None:
    handler = BufferSubscriber()
    first = bus.subscribe("general", handler)
    second = bus.subscribe("general", handler)

    bus.emit(_event())

    assert first is second
    assert bus.subscriber_count("general") == 1
    assert len(handler.events) == 1


def test_handle_from_ended_registration_cannot_remove_new_one(bus: EventBus) -> None:
    handler = BufferSubscriber()
    first = bus.subscribe("general", handler)
    second = bus.subscribe("general", handler)
    second()
    current = bus.subscribe("general", handler)

    first()

    assert current.active
    assert bus.has_subscriber("general", handler)
    current()
    assert not bus.has_subscriber("general", handler)


def test_subscribers_observe_emit_order(bus: EventBus) -> None:
    first = BufferSubscriber()
    second = BufferSubscriber()
    bus.subscribe("general", first)
    bus.subscribe("general", second)

    for timestamp in range(5):
        bus.emit(_event(timestamp=timestamp))

    assert [e.timestamp for e in first.events] == list(range(5))
    assert [e.timestamp for e in second.events] == list(range(5))


def test_failing_subscriber_does_not_block_others(bus: EventBus) -> None:
    before = BufferSubscriber()
    broken = ExplodingSubscriber()
    after = BufferSubscriber()
    for subscriber in (before, broken, after):
        bus.subscribe("general", subscriber)

    delivered = bus.emit(_event())

    assert delivered == 2
    assert broken.calls == 1
    assert len(before.events) == 1
    assert len(after.events) == 1


def test_subscriber_may_unsubscribe_during_dispatch(bus: EventBus) -> None:
    recorder = BufferSubscriber()

    class OneShot:
        def __init__(self) -> None:
            self.unsubscribe = None
            self.calls = 0

        def deliver(self, event: TypingEvent) -> None:
            self.calls += 1
            self.unsubscribe()

    one_shot = OneShot()
    one_shot.unsubscribe = bus.subscribe("general", one_shot)
    bus.subscribe("general", recorder)

    bus.emit(_event(timestamp=1))
    bus.emit(_event(timestamp=2))

    assert one_shot.calls == 1
    assert [e.timestamp for e in recorder.events] == [1, 2]


def test_channels_lists_only_populated_channels(bus: EventBus) -> None:
    unsubscribe = bus.subscribe("room1", BufferSubscriber())
    bus.subscribe("room2", BufferSubscriber())

    unsubscribe()

    assert list(bus.channels()) == ["room2"]


def test_event_is_immutable() -> None:
    event = _event()
    with pytest.raises(AttributeError):
        event.user = "mallory"  # type: ignore[misc]
