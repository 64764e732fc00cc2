"""Abstract key-value storage interface for pmflow."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any


class StorageBackend(ABC):
    """Durable key-value store holding JSON-compatible values."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize database schema and connections."""

    @abstractmethod
    async def close(self) -> None:
        """Close all connections."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get the value stored under ``key``. Returns None if absent."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``. Returns True if it existed."""

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with ``prefix`` in sorted order."""

    @abstractmethod
    async def write_batch(
        self,
        sets: Mapping[str, Any] | None = None,
        deletes: Sequence[str] = (),
    ) -> None:
        """Apply several sets and deletes atomically: all of them or none."""

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Storage statistics for status displays."""
