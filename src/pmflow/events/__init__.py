"""pmflow event system."""

from pmflow.events.bus import EventBus
from pmflow.events.types import EventType

__all__ = ["EventBus", "EventType"]
