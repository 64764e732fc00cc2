"""Tests for the async event bus."""

from __future__ import annotations

from pmflow.events.bus import EventBus
from pmflow.events.types import EventType


def _recorder(bucket: list):
    async def listener(event_type, data):
        bucket.append((event_type, data))

    return listener


async def test_emit_to_type_listener(event_bus: EventBus):
    received: list = []
    event_bus.on(EventType.PROJECT_CREATED, _recorder(received))

    await event_bus.emit(EventType.PROJECT_CREATED, {"project_id": "p1"})
    await event_bus.emit(EventType.PROJECT_DELETED, {"project_id": "p1"})

    assert received == [(EventType.PROJECT_CREATED, {"project_id": "p1"})]


async def test_namespace_listener(event_bus: EventBus):
    received: list = []
    event_bus.on_namespace("entity", _recorder(received))

    await event_bus.emit(EventType.ENTITY_CREATED, {"entity_id": "a"})
    await event_bus.emit(EventType.ENTITIES_REORDERED, {"collection": "phases"})
    await event_bus.emit(EventType.PROJECT_SAVED)

    assert [e for e, _ in received] == [EventType.ENTITY_CREATED, EventType.ENTITIES_REORDERED]


async def test_global_listener_gets_empty_payload(event_bus: EventBus):
    received: list = []
    event_bus.on_all(_recorder(received))

    await event_bus.emit(EventType.HISTORY_RECORDED)

    assert received == [(EventType.HISTORY_RECORDED, {})]


async def test_off(event_bus: EventBus):
    received: list = []
    listener = _recorder(received)
    event_bus.on(EventType.PROJECT_SAVED, listener)
    event_bus.off(EventType.PROJECT_SAVED, listener)
    event_bus.off(EventType.PROJECT_SAVED, listener)

    await event_bus.emit(EventType.PROJECT_SAVED)

    assert received == []


async def test_failing_listener_does_not_block_others(event_bus: EventBus, caplog):
    received: list = []

    async def broken(event_type, data):
        raise RuntimeError("boom")

    event_bus.on(EventType.ENTITY_DELETED, broken)
    event_bus.on(EventType.ENTITY_DELETED, _recorder(received))

    await event_bus.emit(EventType.ENTITY_DELETED, {"entity_id": "x"})

    assert len(received) == 1
    assert "Error in event listener" in caplog.text


async def test_emit_all_preserves_order(event_bus: EventBus):
    received: list = []
    event_bus.on_all(_recorder(received))

    count = await event_bus.emit_all(
        [
            (EventType.ENTITY_CREATED, {"n": 1}),
            (EventType.HISTORY_RECORDED, {"n": 2}),
        ]
    )

    assert count == 2
    assert [d["n"] for _, d in received] == [1, 2]


async def test_clear(event_bus: EventBus):
    received: list = []
    event_bus.on(EventType.PROJECT_CREATED, _recorder(received))
    event_bus.on_all(_recorder(received))
    event_bus.clear()

    await event_bus.emit(EventType.PROJECT_CREATED)

    assert received == []
