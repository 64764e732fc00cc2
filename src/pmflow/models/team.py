"""Team member and gantt task models."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from pmflow.models.base import Record

TeamMemberStatus = Literal["active", "on-leave", "offboarded", "part-time"]


class TeamMember(Record):
    name: str
    email: str = ""
    role: str = "other"
    custom_role: str | None = None
    status: TeamMemberStatus = "active"
    organization: str | None = None
    availability: int | None = Field(default=None, ge=0, le=100)
    linked_task_ids: tuple[str, ...] = ()
    linked_wbs_node_ids: tuple[str, ...] = Field(default=(), alias="linkedWBSNodeIds")
    linked_phase_ids: tuple[str, ...] = ()
    linked_risk_ids: tuple[str, ...] = ()
    linked_requirement_ids: tuple[str, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None


class GanttTask(Record):
    name: str
    description: str | None = None
    start_date: str
    end_date: str
    progress: int = Field(default=0, ge=0, le=100)
    phase_id: str | None = None
    is_milestone: bool | None = None
    parent_id: str | None = None
    children: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    assigned_to: str | None = None
    linked_task_ids: tuple[str, ...] = ()
    linked_wbs_node_ids: tuple[str, ...] = Field(default=(), alias="linkedWBSNodeIds")
    linked_backlog_item_ids: tuple[str, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None
