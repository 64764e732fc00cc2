"""pmflow storage layer."""

from pmflow.storage.base import StorageBackend
from pmflow.storage.sqlite_store import SQLiteStore

__all__ = ["SQLiteStore", "StorageBackend"]
