"""Reference map and the cascade routine that cleans up after deletes.

Every non-owning link between collections is declared once in
``REFERENCE_MAP``. Deleting records from a collection walks the map and, for
each referencing field, either drops the referencing record, pulls the id out
of an id list, or unsets a scalar link. Scalar links not listed here (for
example ``Task.phase_id``) are weak: they may dangle and readers treat a
missing target as unassigned.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import dataclass
from enum import StrEnum

from pmflow.models.project import ProjectData

logger = logging.getLogger(__name__)


class OnDelete(StrEnum):
    DROP = "drop"
    PULL = "pull"
    UNSET = "unset"


@dataclass(frozen=True)
class Reference:
    """``collection.field`` holds ids of the target collection."""

    collection: str
    field: str
    on_delete: OnDelete
    # Only records whose ``entity_type`` equals this value point at the target
    entity_type: str | None = None


def _pull(collection: str, field: str) -> Reference:
    return Reference(collection, field, OnDelete.PULL)


REFERENCE_MAP: dict[str, tuple[Reference, ...]] = {
    "phases": (
        Reference("raci", "entity_id", OnDelete.DROP, entity_type="phase"),
        _pull("requirements", "linked_phase_ids"),
        _pull("stakeholders", "linked_phase_ids"),
        _pull("team_members", "linked_phase_ids"),
    ),
    "tasks": (
        Reference("raci", "entity_id", OnDelete.DROP, entity_type="task"),
        Reference("task_history", "task_id", OnDelete.DROP),
        _pull("wbs", "linked_tasks"),
        _pull("requirements", "linked_tasks"),
        _pull("risks", "linked_task_ids"),
        _pull("stakeholders", "linked_task_ids"),
        _pull("team_members", "linked_task_ids"),
        _pull("gantt_tasks", "linked_task_ids"),
    ),
    "backlog": (
        _pull("sprints", "items"),
        _pull("wbs", "linked_backlog_items"),
        _pull("requirements", "linked_backlog_items"),
        _pull("gantt_tasks", "linked_backlog_item_ids"),
    ),
    "sprints": (
        _pull("releases", "sprints"),
        Reference("backlog", "sprint_id", OnDelete.UNSET),
        Reference("tasks", "sprint_id", OnDelete.UNSET),
    ),
    "releases": (Reference("backlog", "release_id", OnDelete.UNSET),),
    "wbs": (
        Reference("raci", "entity_id", OnDelete.DROP, entity_type="wbs"),
        _pull("wbs", "children"),
        _pull("wbs", "dependencies"),
        _pull("requirements", "linked_wbs_node_ids"),
        _pull("stakeholders", "linked_wbs_node_ids"),
        _pull("team_members", "linked_wbs_node_ids"),
        _pull("gantt_tasks", "linked_wbs_node_ids"),
    ),
    "risks": (
        _pull("wbs", "linked_risks"),
        _pull("requirements", "linked_risk_ids"),
        _pull("stakeholders", "linked_risk_ids"),
        _pull("team_members", "linked_risk_ids"),
    ),
    "requirements": (
        _pull("wbs", "linked_requirements"),
        _pull("backlog", "related_requirements"),
        _pull("risks", "linked_requirement_ids"),
        _pull("stakeholders", "linked_requirement_ids"),
        _pull("team_members", "linked_requirement_ids"),
        _pull("requirements", "child_requirement_ids"),
        _pull("requirements", "dependencies"),
        Reference("requirements", "parent_requirement_id", OnDelete.UNSET),
    ),
    "stakeholders": (_pull("requirements", "linked_stakeholder_ids"),),
    "gantt_tasks": (
        _pull("gantt_tasks", "children"),
        _pull("gantt_tasks", "dependencies"),
    ),
}


def cascade(data: ProjectData, collection: str, removed_ids: Collection[str]) -> ProjectData:
    """Clean every reference to ``removed_ids`` of ``collection`` out of ``data``.

    The removed records themselves must already be gone from ``data``.
    """
    removed = set(removed_ids)
    if not removed:
        return data

    changes: dict[str, tuple] = {}
    for ref in REFERENCE_MAP.get(collection, ()):
        records = changes.get(ref.collection, getattr(data, ref.collection))
        changes[ref.collection] = _apply(ref, records, removed)

    touched = {
        name: records
        for name, records in changes.items()
        if records is not getattr(data, name)
    }
    if touched:
        logger.debug(
            "Cascade from %s %s touched %s", collection, sorted(removed), sorted(touched)
        )
    return data.model_copy(update=touched)


def _apply(ref: Reference, records: tuple, removed: set[str]) -> tuple:
    result = []
    changed = False
    for record in records:
        if ref.entity_type is not None and getattr(record, "entity_type", None) != ref.entity_type:
            result.append(record)
            continue
        value = getattr(record, ref.field, None)
        if ref.on_delete is OnDelete.DROP:
            if value in removed:
                changed = True
                continue
        elif ref.on_delete is OnDelete.PULL:
            if value and any(v in removed for v in value):
                record = record.evolve(**{ref.field: tuple(v for v in value if v not in removed)})
                changed = True
        elif value in removed:
            record = record.evolve(**{ref.field: None})
            changed = True
        result.append(record)
    return tuple(result) if changed else records
