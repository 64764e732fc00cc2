"""Requirement model for the traceability matrix."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from pmflow.models.base import Record
from pmflow.models.task import TaskPriority

RequirementType = Literal[
    "functional", "non-functional", "business", "technical", "regulatory", "quality"
]
RequirementStatus = Literal["draft", "approved", "implemented", "verified", "rejected", "deferred"]

# Prefix used when a requirement code is generated, e.g. FR-001
CODE_PREFIXES: dict[str, str] = {
    "functional": "FR",
    "non-functional": "NFR",
    "business": "BR",
    "technical": "TR",
    "regulatory": "RR",
    "quality": "QR",
}


class Requirement(Record):
    code: str = ""
    title: str
    description: str = ""
    type: RequirementType = "functional"
    priority: TaskPriority = "medium"
    status: RequirementStatus = "draft"
    source: str | None = None
    rationale: str | None = None
    owner: str | None = None
    acceptance_criteria: tuple[str, ...] = ()
    linked_tasks: tuple[str, ...] = ()
    linked_backlog_items: tuple[str, ...] = ()
    linked_wbs_node_ids: tuple[str, ...] = Field(default=(), alias="linkedWBSNodeIds")
    linked_phase_ids: tuple[str, ...] = ()
    linked_stakeholder_ids: tuple[str, ...] = ()
    linked_risk_ids: tuple[str, ...] = ()
    parent_requirement_id: str | None = None
    child_requirement_ids: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    version: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
