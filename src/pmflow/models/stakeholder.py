"""Stakeholder model."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from pmflow.models.base import Record

Level = Literal["low", "medium", "high"]
EngagementLevel = Literal["unaware", "resistant", "neutral", "supportive", "leading"]


class Stakeholder(Record):
    name: str
    role: str = ""
    organization: str = ""
    influence: Level = "medium"
    interest: Level = "medium"
    engagement_level: EngagementLevel = "neutral"
    email: str | None = None
    phone: str | None = None
    engagement_strategy: str | None = None
    linked_phase_ids: tuple[str, ...] = ()
    linked_wbs_node_ids: tuple[str, ...] = Field(default=(), alias="linkedWBSNodeIds")
    linked_task_ids: tuple[str, ...] = ()
    linked_risk_ids: tuple[str, ...] = ()
    linked_requirement_ids: tuple[str, ...] = ()
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
