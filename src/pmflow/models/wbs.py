"""Work breakdown structure node model."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt

from pmflow.models.base import Record

WBSStatus = Literal["not-started", "in-progress", "completed", "on-hold", "cancelled"]


class WBSNode(Record):
    """A node of the WBS tree.

    ``parent_id`` and ``children`` must agree in both directions, and a
    child's ``level`` is always its parent's plus one (roots are level 0).
    Structure is changed through the session, never by editing these fields.
    """

    code: str = ""
    name: str
    description: str = ""
    parent_id: str | None = None
    children: tuple[str, ...] = ()
    level: NonNegativeInt = 0
    phase_id: str | None = None
    responsible: str | None = None
    budget: NonNegativeFloat | None = None
    actual_cost: NonNegativeFloat | None = None
    estimated_hours: NonNegativeFloat | None = None
    actual_hours: NonNegativeFloat | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: WBSStatus | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    linked_tasks: tuple[str, ...] = ()
    linked_backlog_items: tuple[str, ...] = ()
    linked_requirements: tuple[str, ...] = ()
    linked_risks: tuple[str, ...] = ()
    deliverables: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    milestones: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None


STRUCTURE_FIELDS = frozenset({"parent_id", "children", "level"})
