"""RACI assignment model."""

from __future__ import annotations

from typing import Literal

from pmflow.models.base import Record

RACIEntityType = Literal["phase", "wbs", "task", "deliverable"]
Responsibility = Literal["R", "A", "C", "I", ""]

ACCOUNTABLE = "A"

RESPONSIBILITY_LABELS: dict[str, str] = {
    "R": "Responsible",
    "A": "Accountable",
    "C": "Consulted",
    "I": "Informed",
    "": "",
}


class RACIEntry(Record):
    """One role's responsibility for one entity."""

    entity_type: RACIEntityType
    entity_id: str
    role: str
    responsibility: Responsibility = ""
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def entity_key(self) -> tuple[str, str]:
        return (self.entity_type, self.entity_id)
