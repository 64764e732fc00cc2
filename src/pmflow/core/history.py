"""Append-only audit trail of tracked field changes.

A ``HistoryRecorder`` is configured with an entity type and the fields it
watches. Diffing two versions of a record yields one entry per changed scalar
field and one entry per member added to or removed from a set-valued field.
Entries come back in the order the fields are declared; the recorder never
sorts, stores or mutates anything itself.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from pmflow.models.base import Record
from pmflow.models.task import TaskHistoryEntry

EntryFactory = Callable[..., Record]


@dataclass(frozen=True)
class TrackedField:
    name: str
    action: str = "updated"
    added_action: str | None = None
    removed_action: str | None = None

    @property
    def is_set(self) -> bool:
        return self.added_action is not None


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _task_entry(**kwargs: Any) -> TaskHistoryEntry:
    entity_id = kwargs.pop("entity_id")
    return TaskHistoryEntry(task_id=entity_id, **kwargs)


class HistoryRecorder:
    """Builds audit entries for one entity type."""

    def __init__(
        self,
        entity_type: str,
        tracked_fields: Sequence[TrackedField],
        *,
        entry_factory: EntryFactory = _task_entry,
    ) -> None:
        self.entity_type = entity_type
        self.tracked_fields = tuple(tracked_fields)
        self._make = entry_factory

    def created(self, record: Record, *, user_name: str, timestamp: str) -> list[Record]:
        return [
            self._make(
                entity_id=record.id,
                action="created",
                user_name=user_name,
                timestamp=timestamp,
            )
        ]

    def diff(
        self,
        old: Record,
        new: Record,
        *,
        user_name: str,
        timestamp: str,
        comment: str | None = None,
    ) -> list[Record]:
        entries: list[Record] = []
        for tracked in self.tracked_fields:
            before = getattr(old, tracked.name, None)
            after = getattr(new, tracked.name, None)
            if before == after:
                continue
            common = {
                "entity_id": new.id,
                "field": tracked.name,
                "user_name": user_name,
                "timestamp": timestamp,
                "comment": comment,
            }
            if tracked.is_set:
                before_set = list(before or ())
                after_set = list(after or ())
                for value in after_set:
                    if value not in before_set:
                        entries.append(
                            self._make(action=tracked.added_action, new_value=str(value), **common)
                        )
                for value in before_set:
                    if value not in after_set:
                        entries.append(
                            self._make(
                                action=tracked.removed_action, old_value=str(value), **common
                            )
                        )
            else:
                entries.append(
                    self._make(
                        action=tracked.action,
                        old_value=stringify(before),
                        new_value=stringify(after),
                        **common,
                    )
                )
        return entries


TASK_HISTORY = HistoryRecorder(
    "task",
    (
        TrackedField("status", "status_changed"),
        TrackedField("priority", "priority_changed"),
        TrackedField("assignee", "assigned"),
        TrackedField("tags", added_action="tag_added", removed_action="tag_removed"),
    ),
)


def trim_history(entries: tuple[Record, ...], limit: int) -> tuple[Record, ...]:
    """Keep the newest ``limit`` entries; ``limit <= 0`` keeps all."""
    if limit <= 0 or len(entries) <= limit:
        return entries
    return entries[len(entries) - limit :]
