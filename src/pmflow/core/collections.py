"""Registry of the collections a project owns and their per-collection rules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pmflow.errors import NotFoundError
from pmflow.models.backlog import BacklogItem, Release, Sprint
from pmflow.models.base import Record
from pmflow.models.phase import Phase
from pmflow.models.raci import RACIEntry
from pmflow.models.requirement import Requirement
from pmflow.models.risk import Risk
from pmflow.models.stakeholder import Stakeholder
from pmflow.models.task import Task, TaskHistoryEntry
from pmflow.models.team import GanttTask, TeamMember
from pmflow.models.wbs import WBSNode


@dataclass(frozen=True)
class CollectionSpec:
    """How one ``ProjectData`` collection is created, validated and ordered."""

    name: str
    model: type[Record]
    entity_type: str
    required: tuple[str, ...] = ()
    ordered: bool = False
    writable: bool = True


COLLECTIONS: dict[str, CollectionSpec] = {
    spec.name: spec
    for spec in (
        CollectionSpec("phases", Phase, "phase", ("name", "description"), ordered=True),
        CollectionSpec("tasks", Task, "task", ("title",)),
        CollectionSpec("backlog", BacklogItem, "backlog_item", ("title", "description"), ordered=True),
        CollectionSpec("sprints", Sprint, "sprint", ("name",)),
        CollectionSpec("releases", Release, "release", ("name",)),
        CollectionSpec("wbs", WBSNode, "wbs", ("name",)),
        CollectionSpec("risks", Risk, "risk", ("title",)),
        CollectionSpec("stakeholders", Stakeholder, "stakeholder", ("name",)),
        CollectionSpec("requirements", Requirement, "requirement", ("title",)),
        CollectionSpec("raci", RACIEntry, "raci", ("entity_id", "role")),
        CollectionSpec("team_members", TeamMember, "team_member", ("name",)),
        CollectionSpec("gantt_tasks", GanttTask, "gantt_task", ("name",)),
        CollectionSpec(
            "task_history", TaskHistoryEntry, "task_history", ("task_id",), writable=False
        ),
    )
}


def get_spec(collection: str) -> CollectionSpec:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise NotFoundError("collection", collection) from None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def blank_required(spec: CollectionSpec, values: Mapping[str, Any]) -> list[str]:
    """Names of required fields that are missing or whitespace-only."""
    return [name for name in spec.required if is_blank(values.get(name))]


def find_record(records: Iterable[Record], entity_id: str) -> Record | None:
    for record in records:
        if record.id == entity_id:
            return record
    return None


def replace_record(records: tuple[Record, ...], updated: Record) -> tuple[Record, ...]:
    return tuple(updated if r.id == updated.id else r for r in records)
