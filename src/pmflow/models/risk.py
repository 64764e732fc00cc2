"""Risk register model with a derived score."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator

from pmflow.models.base import Record

RiskProbability = Literal["low", "medium", "high"]
RiskImpact = Literal["low", "medium", "high", "critical"]
RiskCategory = Literal[
    "technical",
    "external",
    "organizational",
    "project-management",
    "resource",
    "schedule",
    "budget",
    "quality",
    "scope",
    "stakeholder",
    "other",
]
RiskResponse = Literal["avoid", "mitigate", "transfer", "accept", "exploit", "enhance", "share"]
RiskStatus = Literal["identified", "analyzing", "mitigating", "monitoring", "closed", "occurred"]

PROBABILITY_WEIGHTS: dict[str, int] = {"low": 1, "medium": 2, "high": 3}
IMPACT_WEIGHTS: dict[str, int] = {"low": 1, "medium": 2, "high": 3, "critical": 4}


def risk_score(probability: str, impact: str) -> int:
    """Probability weight times impact weight (1..12)."""
    return PROBABILITY_WEIGHTS[probability] * IMPACT_WEIGHTS[impact]


class Risk(Record):
    """A register entry. ``score`` is always derived, any supplied value is replaced."""

    title: str
    description: str = ""
    category: RiskCategory | None = None
    probability: RiskProbability = "medium"
    impact: RiskImpact = "medium"
    score: int = 0
    response: RiskResponse = "mitigate"
    response_plan: str | None = None
    owner: str = ""
    status: RiskStatus = "identified"
    root_causes: tuple[str, ...] = ()
    triggers: tuple[str, ...] = ()
    linked_phase_id: str | None = None
    linked_wbs_node_id: str | None = Field(default=None, alias="linkedWBSNodeId")
    linked_task_ids: tuple[str, ...] = ()
    linked_requirement_ids: tuple[str, ...] = ()
    identified_date: str | None = None
    next_review_date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_score(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        probability = data.get("probability", "medium")
        impact = data.get("impact", "medium")
        if probability in PROBABILITY_WEIGHTS and impact in IMPACT_WEIGHTS:
            data = {**data, "score": risk_score(probability, impact)}
        return data
