"""Async event bus for project and entity lifecycle notifications."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from pmflow.events.types import EventType

logger = logging.getLogger(__name__)

Listener = Callable[[EventType, dict[str, Any]], Coroutine[Any, Any, None]]


class EventBus:
    """Simple async pub/sub event bus.

    Listeners subscribe to one event type, to a namespace (the part before the
    dot, e.g. ``"entity"``), or to everything. A failing listener is logged and
    does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Listener]] = defaultdict(list)
        self._namespace_listeners: dict[str, list[Listener]] = defaultdict(list)
        self._global_listeners: list[Listener] = []

    def on(self, event_type: EventType, listener: Listener) -> None:
        """Register a listener for a specific event type."""
        self._listeners[event_type].append(listener)

    def on_namespace(self, namespace: str, listener: Listener) -> None:
        """Register a listener for every event in ``namespace``."""
        self._namespace_listeners[namespace].append(listener)

    def on_all(self, listener: Listener) -> None:
        """Register a listener for all events."""
        self._global_listeners.append(listener)

    def off(self, event_type: EventType, listener: Listener) -> None:
        """Remove a listener."""
        if listener in self._listeners[event_type]:
            self._listeners[event_type].remove(listener)

    async def emit(self, event_type: EventType, data: dict[str, Any] | None = None) -> None:
        """Emit an event to all registered listeners."""
        data = data or {}
        namespace = event_type.value.split(".", 1)[0]
        listeners = (
            self._listeners.get(event_type, [])
            + self._namespace_listeners.get(namespace, [])
            + self._global_listeners
        )

        for listener in listeners:
            try:
                await listener(event_type, data)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error in event listener for %s", event_type)

    async def emit_all(self, events: Iterable[tuple[EventType, dict[str, Any]]]) -> int:
        """Emit queued events in order. Returns how many were delivered."""
        count = 0
        for event_type, data in events:
            await self.emit(event_type, data)
            count += 1
        return count

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()
        self._namespace_listeners.clear()
        self._global_listeners.clear()
