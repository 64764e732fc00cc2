"""Project, project data and index metadata models."""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field

from pmflow.models.backlog import BacklogItem, Release, Sprint
from pmflow.models.base import RECORD_CONFIG, utc_now
from pmflow.models.phase import Phase
from pmflow.models.raci import RACIEntry
from pmflow.models.requirement import Requirement
from pmflow.models.risk import Risk
from pmflow.models.stakeholder import Stakeholder
from pmflow.models.task import Task, TaskHistoryEntry
from pmflow.models.team import GanttTask, TeamMember
from pmflow.models.wbs import WBSNode

ProjectMode = Literal["waterfall", "agile", "hybrid"]

SCHEMA_VERSION = 2


def new_project_id() -> str:
    return f"project-{uuid.uuid4().hex[:12]}"


class ProjectData(BaseModel):
    """Snapshot of every collection a project owns."""

    model_config = RECORD_CONFIG

    mode: ProjectMode = "waterfall"
    phases: tuple[Phase, ...] = ()
    tasks: tuple[Task, ...] = ()
    backlog: tuple[BacklogItem, ...] = ()
    sprints: tuple[Sprint, ...] = ()
    releases: tuple[Release, ...] = ()
    raci: tuple[RACIEntry, ...] = ()
    wbs: tuple[WBSNode, ...] = ()
    risks: tuple[Risk, ...] = ()
    stakeholders: tuple[Stakeholder, ...] = ()
    requirements: tuple[Requirement, ...] = ()
    gantt_tasks: tuple[GanttTask, ...] = ()
    team_members: tuple[TeamMember, ...] = ()
    custom_phases: tuple[Phase, ...] = ()
    task_history: tuple[TaskHistoryEntry, ...] = ()
    custom_roles: tuple[str, ...] = ()

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Project(BaseModel):
    """A named project and its embedded data snapshot."""

    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_project_id)
    name: str
    description: str = ""
    mode: ProjectMode = "waterfall"
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    schema_version: int = SCHEMA_VERSION
    data: ProjectData = Field(default_factory=ProjectData)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def metadata(self) -> ProjectMetadata:
        return ProjectMetadata(
            id=self.id,
            name=self.name,
            description=self.description,
            mode=self.data.mode,
            created_at=self.created_at,
            updated_at=self.updated_at,
            task_count=len(self.data.tasks),
            risk_count=len(self.data.risks),
            stakeholder_count=len(self.data.stakeholders),
            team_member_count=len(self.data.team_members),
        )


class ProjectMetadata(BaseModel):
    """Row of the project index shown by project pickers."""

    model_config = RECORD_CONFIG

    id: str
    name: str
    description: str = ""
    mode: ProjectMode = "waterfall"
    created_at: str
    updated_at: str
    task_count: int = 0
    risk_count: int = 0
    stakeholder_count: int = 0
    team_member_count: int = 0

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_response(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mode": self.mode,
            "tasks": self.task_count,
            "risks": self.risk_count,
            "updated_at": self.updated_at,
        }
