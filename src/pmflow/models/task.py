"""Task, tag and task history models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt

from pmflow.models.base import Record, utc_now

TaskStatus = Literal["backlog", "todo", "in-progress", "review", "done"]
TaskPriority = Literal["low", "medium", "high", "critical"]
HistoryAction = Literal[
    "created",
    "updated",
    "status_changed",
    "assigned",
    "tag_added",
    "tag_removed",
    "priority_changed",
]


class TaskTag(Record):
    name: str
    color: str = "#64748b"


class Task(Record):
    """A unit of work on the kanban board.

    ``phase_id`` is a weak reference: it may point at a phase that no longer
    exists, in which case the task counts as unassigned.
    """

    title: str
    description: str = ""
    status: TaskStatus = "backlog"
    priority: TaskPriority = "medium"
    phase_id: str | None = None
    assignee: str | None = None
    assignee_id: str | None = None
    story_points: NonNegativeInt | None = None
    sprint_id: str | None = None
    start_date: str | None = None
    due_date: str | None = None
    completed_at: str | None = None
    tags: tuple[str, ...] = ()
    estimated_hours: NonNegativeFloat | None = None
    actual_hours: NonNegativeFloat | None = None
    created_by: str | None = None
    updated_by: str | None = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str | None = None


class TaskHistoryEntry(Record):
    """One append-only audit row for a task field change."""

    task_id: str
    action: HistoryAction
    field: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    user_id: str = ""
    user_name: str = ""
    timestamp: str = Field(default_factory=utc_now)
    comment: str | None = None
