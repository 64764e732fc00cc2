"""Backlog, sprint and release models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, PositiveInt

from pmflow.models.base import Record, utc_now
from pmflow.models.task import TaskPriority

BacklogItemType = Literal["epic", "feature", "story", "bug", "technical", "spike"]
BacklogItemStatus = Literal["draft", "refined", "ready", "in-sprint", "done", "archived"]


class BacklogItem(Record):
    title: str
    description: str = ""
    story_points: PositiveInt | None = None
    priority: TaskPriority = "medium"
    type: BacklogItemType = "feature"
    status: BacklogItemStatus | None = None
    order: int = 0
    epic_id: str | None = None
    parent_id: str | None = None
    sprint_id: str | None = None
    release_id: str | None = None
    assignee: str | None = None
    tags: tuple[str, ...] = ()
    related_requirements: tuple[str, ...] = ()
    created_by: str | None = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str | None = None


class Sprint(Record):
    """A time-boxed iteration; ``items`` lists member backlog item ids."""

    name: str
    goal: str = ""
    start_date: str | None = None
    end_date: str | None = None
    velocity: int | None = None
    items: tuple[str, ...] = ()


class Release(Record):
    name: str
    version: str = ""
    target_date: str | None = None
    sprints: tuple[str, ...] = ()
    status: Literal["planned", "in-progress", "released"] = "planned"
