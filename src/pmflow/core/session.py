"""Mutation API: the only way records enter, change in, or leave a project.

A ``ProjectSession`` wraps one ``Project`` snapshot. Every successful call
replaces ``session.project`` with a new immutable snapshot; a rejected call
raises before anything is swapped in, so no partial state is ever visible.
Lifecycle events are queued on the session and handed to the event bus when
the project manager commits it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from pmflow.config import VALID_MODES, Config
from pmflow.core import wbs as wbs_tree
from pmflow.core.cascade import cascade
from pmflow.core.collections import (
    COLLECTIONS,
    CollectionSpec,
    blank_required,
    find_record,
    get_spec,
    is_blank,
    replace_record,
)
from pmflow.core.history import TASK_HISTORY, trim_history
from pmflow.core.rules import (
    check_project,
    check_same_ids,
    check_single_accountable,
    insert_at,
    renumber,
)
from pmflow.core.wbs import WBSDeletePolicy
from pmflow.errors import NotFoundError, ValidationError
from pmflow.events.types import EventType
from pmflow.models.backlog import BacklogItem, Release, Sprint
from pmflow.models.base import Record, new_id, utc_now
from pmflow.models.phase import Phase
from pmflow.models.project import Project, ProjectData
from pmflow.models.raci import RACIEntry
from pmflow.models.requirement import CODE_PREFIXES, Requirement
from pmflow.models.risk import Risk
from pmflow.models.stakeholder import Stakeholder
from pmflow.models.task import Task, TaskHistoryEntry
from pmflow.models.team import GanttTask, TeamMember
from pmflow.models.wbs import STRUCTURE_FIELDS, WBSNode

logger = logging.getLogger(__name__)

PendingEvent = tuple[EventType, dict[str, Any]]


class ProjectSession:
    """Explicit editing context for one project."""

    def __init__(
        self,
        project: Project,
        *,
        actor: str | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config or Config()
        self.project = project
        self.actor = actor or self.config.default_actor
        self._pending: list[PendingEvent] = []

    @property
    def data(self) -> ProjectData:
        return self.project.data

    def drain_events(self) -> list[PendingEvent]:
        """Return and forget the events queued since the last drain."""
        events, self._pending = self._pending, []
        return events

    # --- Reads ---

    def records(self, collection: str) -> tuple[Record, ...]:
        get_spec(collection)
        return getattr(self.data, collection)

    def find(self, collection: str, entity_id: str) -> Record | None:
        return find_record(self.records(collection), entity_id)

    def get(self, collection: str, entity_id: str) -> Record:
        record = self.find(collection, entity_id)
        if record is None:
            raise NotFoundError(collection, entity_id)
        return record

    def phase_for_task(self, task: Task | str) -> Phase | None:
        """The task's phase, or None when unassigned or the phase is gone."""
        if isinstance(task, str):
            task = self.get("tasks", task)
        if not task.phase_id:
            return None
        return find_record(self.data.phases, task.phase_id)

    def history_for(self, task_id: str) -> list[TaskHistoryEntry]:
        """History of one task, newest first."""
        return [e for e in reversed(self.data.task_history) if e.task_id == task_id]

    def check(self) -> dict[str, list[dict[str, Any]]]:
        return check_project(self.data)

    # --- Generic mutations ---

    def create(
        self, collection: str, partial: Mapping[str, Any] | None = None, /, **fields: Any
    ) -> Record:
        """Create a record with a fresh id and return it."""
        spec = self._writable(collection)
        values = {**(partial or {}), **fields}
        if "id" in values:
            raise ValidationError("Record ids are assigned by the store")
        self._check_fields(spec, values)
        self._require(spec, values)

        now = utc_now()
        existing = getattr(self.data, collection)
        taken = {r.id for r in existing}
        values["id"] = new_id()
        while values["id"] in taken:
            values["id"] = new_id()
        if "created_at" in spec.model.model_fields and values.get("created_at") is None:
            values["created_at"] = now
        if collection == "tasks":
            values.setdefault("created_by", self.actor)
        if collection == "requirements" and is_blank(values.get("code")):
            if self.config.requirements_auto_generate_code:
                values["code"] = self._next_requirement_code(values.get("type", "functional"))
        if collection == "wbs" and values.get("children"):
            raise ValidationError("WBS children are linked by creating nodes with parent_id")

        record = self._build(spec, values)
        changes: dict[str, tuple] = {}

        if spec.ordered:
            position = values.get("order") or None
            changes[collection] = insert_at(existing, record, position)
            record = find_record(changes[collection], record.id)
        elif collection == "wbs":
            changes[collection] = wbs_tree.attach(existing, record)
            record = find_record(changes[collection], record.id)
        elif collection == "raci":
            changes[collection] = self._put_raci(existing, record)
        else:
            changes[collection] = (*existing, record)

        history: list[Record] = []
        if collection == "tasks":
            history = TASK_HISTORY.created(record, user_name=self.actor, timestamp=now)
            changes["task_history"] = self._append_history(history)

        self._commit(
            changes,
            EventType.ENTITY_CREATED,
            {"collection": collection, "entity_id": record.id},
        )
        self._queue_history(history)
        logger.info("Created %s %s in project %s", spec.entity_type, record.id, self.project.id)
        return record

    def update(
        self,
        collection: str,
        entity_id: str,
        patch: Mapping[str, Any] | None = None,
        /,
        **fields: Any,
    ) -> Record:
        """Merge ``patch`` into an existing record and return the new version."""
        spec = self._writable(collection)
        patch = {**(patch or {}), **fields}
        current = self.get(collection, entity_id)

        if patch.pop("id", entity_id) != entity_id:
            raise ValidationError("Record ids cannot be changed")
        if collection == "wbs" and STRUCTURE_FIELDS & patch.keys():
            raise ValidationError("WBS structure changes go through move_wbs_node")
        if spec.ordered and "order" in patch:
            raise ValidationError(f"{collection} order changes go through reorder")
        self._check_fields(spec, patch, known=current.model_extra or {})

        merged = {**current.model_dump(), **patch}
        self._require(spec, merged)
        now = utc_now()
        if "updated_at" in spec.model.model_fields:
            merged["updated_at"] = now
        if collection == "tasks":
            merged["updated_by"] = self.actor
        updated = self._build(spec, merged)

        existing = getattr(self.data, collection)
        if collection == "raci":
            self._check_raci(existing, updated)
        changes: dict[str, tuple] = {collection: replace_record(existing, updated)}
        if collection == "wbs" and updated.code != current.code:
            changes["wbs"] = wbs_tree.recode(changes["wbs"], entity_id, updated.code)
            updated = find_record(changes["wbs"], entity_id)

        history: list[Record] = []
        if collection == "tasks":
            history = TASK_HISTORY.diff(current, updated, user_name=self.actor, timestamp=now)
            if history:
                changes["task_history"] = self._append_history(history)

        self._commit(
            changes,
            EventType.ENTITY_UPDATED,
            {"collection": collection, "entity_id": entity_id, "fields": sorted(patch)},
        )
        self._queue_history(history)
        logger.debug("Updated %s %s: %s", spec.entity_type, entity_id, sorted(patch))
        return updated

    def remove(
        self,
        collection: str,
        entity_id: str,
        *,
        wbs_policy: WBSDeletePolicy = WBSDeletePolicy.REPARENT,
    ) -> bool:
        """Delete a record and cascade. Returns False if it was already absent."""
        spec = self._writable(collection)
        existing = getattr(self.data, collection)
        if find_record(existing, entity_id) is None:
            return False

        if collection == "wbs":
            remaining, removed = wbs_tree.remove(existing, entity_id, WBSDeletePolicy(wbs_policy))
        else:
            removed = [entity_id]
            remaining = tuple(r for r in existing if r.id != entity_id)
            if spec.ordered:
                remaining = renumber(remaining)

        data = cascade(self.data.model_copy(update={collection: remaining}), collection, removed)
        self._commit_data(
            data,
            EventType.ENTITY_DELETED,
            {"collection": collection, "entity_id": entity_id, "removed": removed},
        )
        logger.info(
            "Deleted %s %s from project %s (%d removed)",
            spec.entity_type,
            entity_id,
            self.project.id,
            len(removed),
        )
        return True

    def reorder(self, collection: str, ordered_ids: list[str]) -> tuple[Record, ...]:
        """Put an ordered collection into exactly the given id sequence."""
        spec = self._writable(collection)
        if not spec.ordered:
            raise ValidationError(f"{collection} has no order")
        existing = getattr(self.data, collection)
        check_same_ids(collection, (r.id for r in existing), ordered_ids)
        by_id = {r.id: r for r in existing}
        reordered = renumber([by_id[i] for i in ordered_ids])
        self._commit(
            {collection: reordered},
            EventType.ENTITIES_REORDERED,
            {"collection": collection, "ids": list(ordered_ids)},
        )
        return reordered

    # --- Phases ---

    def add_phase(self, **fields: Any) -> Phase:
        return self.create("phases", fields)

    def update_phase(self, phase_id: str, **patch: Any) -> Phase:
        return self.update("phases", phase_id, patch)

    def delete_phase(self, phase_id: str) -> bool:
        return self.remove("phases", phase_id)

    def reorder_phases(self, ordered_ids: list[str]) -> tuple[Phase, ...]:
        return self.reorder("phases", ordered_ids)

    # --- Tasks ---

    def add_task(self, **fields: Any) -> Task:
        return self.create("tasks", fields)

    def update_task(self, task_id: str, **patch: Any) -> Task:
        return self.update("tasks", task_id, patch)

    def delete_task(self, task_id: str) -> bool:
        return self.remove("tasks", task_id)

    # --- Backlog, sprints, releases ---

    def add_backlog_item(self, **fields: Any) -> BacklogItem:
        return self.create("backlog", fields)

    def update_backlog_item(self, item_id: str, **patch: Any) -> BacklogItem:
        return self.update("backlog", item_id, patch)

    def delete_backlog_item(self, item_id: str) -> bool:
        return self.remove("backlog", item_id)

    def reorder_backlog(self, ordered_ids: list[str]) -> tuple[BacklogItem, ...]:
        return self.reorder("backlog", ordered_ids)

    def move_backlog_item(self, item_id: str, sprint_id: str | None) -> BacklogItem:
        """Assign a backlog item to a sprint (or none), keeping sprint membership in sync."""
        item = self.get("backlog", item_id)
        if sprint_id is not None:
            self.get("sprints", sprint_id)
        sprints = tuple(
            sprint.evolve(
                items=tuple(i for i in sprint.items if i != item_id)
                + ((item_id,) if sprint.id == sprint_id else ())
            )
            if item_id in sprint.items or sprint.id == sprint_id
            else sprint
            for sprint in self.data.sprints
        )
        moved = item.evolve(sprint_id=sprint_id, updated_at=utc_now())
        self._commit(
            {"backlog": replace_record(self.data.backlog, moved), "sprints": sprints},
            EventType.ENTITY_UPDATED,
            {"collection": "backlog", "entity_id": item_id, "fields": ["sprint_id"]},
        )
        return moved

    def add_sprint(self, **fields: Any) -> Sprint:
        return self.create("sprints", fields)

    def update_sprint(self, sprint_id: str, **patch: Any) -> Sprint:
        return self.update("sprints", sprint_id, patch)

    def delete_sprint(self, sprint_id: str) -> bool:
        return self.remove("sprints", sprint_id)

    def add_release(self, **fields: Any) -> Release:
        return self.create("releases", fields)

    def update_release(self, release_id: str, **patch: Any) -> Release:
        return self.update("releases", release_id, patch)

    def delete_release(self, release_id: str) -> bool:
        return self.remove("releases", release_id)

    # --- WBS ---

    def add_wbs_node(self, **fields: Any) -> WBSNode:
        return self.create("wbs", fields)

    def update_wbs_node(self, node_id: str, **patch: Any) -> WBSNode:
        return self.update("wbs", node_id, patch)

    def delete_wbs_node(
        self, node_id: str, *, policy: WBSDeletePolicy = WBSDeletePolicy.REPARENT
    ) -> bool:
        return self.remove("wbs", node_id, wbs_policy=policy)

    def move_wbs_node(self, node_id: str, new_parent_id: str | None) -> WBSNode:
        nodes = wbs_tree.move(self.data.wbs, node_id, new_parent_id)
        self._commit(
            {"wbs": nodes},
            EventType.ENTITY_UPDATED,
            {"collection": "wbs", "entity_id": node_id, "fields": ["parent_id"]},
        )
        return self.get("wbs", node_id)

    # --- Risks, stakeholders, requirements, team, gantt ---

    def add_risk(self, **fields: Any) -> Risk:
        return self.create("risks", fields)

    def update_risk(self, risk_id: str, **patch: Any) -> Risk:
        return self.update("risks", risk_id, patch)

    def delete_risk(self, risk_id: str) -> bool:
        return self.remove("risks", risk_id)

    def add_stakeholder(self, **fields: Any) -> Stakeholder:
        return self.create("stakeholders", fields)

    def update_stakeholder(self, stakeholder_id: str, **patch: Any) -> Stakeholder:
        return self.update("stakeholders", stakeholder_id, patch)

    def delete_stakeholder(self, stakeholder_id: str) -> bool:
        return self.remove("stakeholders", stakeholder_id)

    def add_requirement(self, **fields: Any) -> Requirement:
        return self.create("requirements", fields)

    def update_requirement(self, requirement_id: str, **patch: Any) -> Requirement:
        return self.update("requirements", requirement_id, patch)

    def delete_requirement(self, requirement_id: str) -> bool:
        return self.remove("requirements", requirement_id)

    def add_team_member(self, **fields: Any) -> TeamMember:
        return self.create("team_members", fields)

    def update_team_member(self, member_id: str, **patch: Any) -> TeamMember:
        return self.update("team_members", member_id, patch)

    def delete_team_member(self, member_id: str) -> bool:
        return self.remove("team_members", member_id)

    def add_gantt_task(self, **fields: Any) -> GanttTask:
        return self.create("gantt_tasks", fields)

    def update_gantt_task(self, gantt_task_id: str, **patch: Any) -> GanttTask:
        return self.update("gantt_tasks", gantt_task_id, patch)

    def delete_gantt_task(self, gantt_task_id: str) -> bool:
        return self.remove("gantt_tasks", gantt_task_id)

    # --- RACI and custom roles ---

    def add_raci_entry(self, **fields: Any) -> RACIEntry:
        """Set one role's responsibility for an entity, replacing that role's previous entry."""
        return self.create("raci", fields)

    def update_raci_entry(self, entry_id: str, **patch: Any) -> RACIEntry:
        return self.update("raci", entry_id, patch)

    def delete_raci_entry(self, entry_id: str) -> bool:
        return self.remove("raci", entry_id)

    def add_custom_role(self, name: str) -> str:
        role = (name or "").strip()
        if not role:
            raise ValidationError("Role name cannot be empty")
        if role in self.data.custom_roles:
            raise ValidationError(f"Role already exists: {role}")
        self._commit(
            {"custom_roles": (*self.data.custom_roles, role)},
            EventType.ENTITY_CREATED,
            {"collection": "custom_roles", "entity_id": role},
        )
        return role

    def delete_custom_role(self, name: str) -> bool:
        """Remove a custom role and every RACI entry assigned to it."""
        if name not in self.data.custom_roles:
            return False
        self._commit(
            {
                "custom_roles": tuple(r for r in self.data.custom_roles if r != name),
                "raci": tuple(e for e in self.data.raci if e.role != name),
            },
            EventType.ENTITY_DELETED,
            {"collection": "custom_roles", "entity_id": name, "removed": [name]},
        )
        return True

    # --- Project-level ---

    def set_mode(self, mode: str) -> None:
        if mode not in VALID_MODES:
            raise ValidationError(f"Invalid mode: {mode}. Must be one of {sorted(VALID_MODES)}")
        self.project = self.project.model_copy(
            update={
                "mode": mode,
                "data": self.data.model_copy(update={"mode": mode}),
                "updated_at": utc_now(),
            }
        )
        self._pending.append(
            (EventType.PROJECT_UPDATED, {"project_id": self.project.id, "mode": mode})
        )

    # --- Internals ---

    def _writable(self, collection: str) -> CollectionSpec:
        spec = get_spec(collection)
        if not spec.writable:
            raise ValidationError(f"{collection} is maintained by the store and is read-only")
        return spec

    @staticmethod
    def _check_fields(
        spec: CollectionSpec, values: Mapping[str, Any], known: Mapping[str, Any] | None = None
    ) -> None:
        """Reject keys that are not model fields, unless the record already carries them."""
        known = known or {}
        fields = spec.model.model_fields
        allowed = set(fields) | {info.alias or to_camel(name) for name, info in fields.items()}
        unknown = sorted(k for k in values if k not in allowed and k not in known)
        if unknown:
            raise ValidationError(f"Unknown {spec.entity_type} fields: {', '.join(unknown)}")

    @staticmethod
    def _require(spec: CollectionSpec, values: Mapping[str, Any]) -> None:
        blank = blank_required(spec, values)
        if blank:
            raise ValidationError(f"{spec.entity_type} requires non-empty: {', '.join(blank)}")

    @staticmethod
    def _build(spec: CollectionSpec, values: Mapping[str, Any]) -> Record:
        try:
            return spec.model.model_validate(values)
        except PydanticValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ValidationError(f"Invalid {spec.entity_type}: {details}") from exc

    def _check_raci(self, existing: tuple[RACIEntry, ...], entry: RACIEntry) -> None:
        for other in existing:
            if other.id != entry.id and other.entity_key == entry.entity_key:
                if other.role == entry.role:
                    raise ValidationError(
                        f"Role {entry.role} already has an entry for "
                        f"{entry.entity_type} {entry.entity_id}"
                    )
        if self.config.raci_validate_single_accountable:
            check_single_accountable(existing, entry)

    def _put_raci(self, existing: tuple[RACIEntry, ...], entry: RACIEntry) -> tuple:
        same = next(
            (e for e in existing if e.entity_key == entry.entity_key and e.role == entry.role),
            None,
        )
        if self.config.raci_validate_single_accountable:
            check_single_accountable(existing, entry)
        if same is None:
            return (*existing, entry)
        return tuple(entry if e.id == same.id else e for e in existing)

    def _next_requirement_code(self, requirement_type: str) -> str:
        prefix = CODE_PREFIXES.get(requirement_type, "REQ")
        numbers = [
            int(code.rsplit("-", 1)[1])
            for code in (r.code for r in self.data.requirements)
            if code.startswith(f"{prefix}-") and code.rsplit("-", 1)[1].isdigit()
        ]
        return f"{prefix}-{max(numbers, default=0) + 1:03d}"

    def _append_history(self, entries: list[Record]) -> tuple:
        return trim_history(
            (*self.data.task_history, *entries), self.config.max_history_entries
        )

    def _queue_history(self, entries: list[Record]) -> None:
        for entry in entries:
            self._pending.append(
                (
                    EventType.HISTORY_RECORDED,
                    {
                        "project_id": self.project.id,
                        "task_id": entry.task_id,
                        "action": entry.action,
                    },
                )
            )

    def _commit(self, changes: dict[str, tuple], event: EventType, payload: dict) -> None:
        self._commit_data(self.data.model_copy(update=changes), event, payload)

    def _commit_data(self, data: ProjectData, event: EventType, payload: dict) -> None:
        self.project = self.project.model_copy(update={"data": data, "updated_at": utc_now()})
        self._pending.append((event, {"project_id": self.project.id, **payload}))


__all__ = ["COLLECTIONS", "ProjectSession", "WBSDeletePolicy"]
