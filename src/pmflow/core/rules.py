"""Invariant checks that span more than one record.

The ``check_*`` functions guard a single mutation and raise; the ``find_*``
functions scan a whole snapshot and report problems without fixing them, which
is how state that predates strict enforcement (for example after an import)
gets surfaced.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pmflow.errors import AccountableConflictError, ValidationError
from pmflow.models.base import Record
from pmflow.models.phase import Phase
from pmflow.models.project import Project, ProjectData
from pmflow.models.raci import ACCOUNTABLE, RACIEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountableViolation:
    entity_type: str
    entity_id: str
    conflicting_roles: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "conflictingRoles": list(self.conflicting_roles),
        }


@dataclass(frozen=True)
class WBSViolation:
    node_id: str
    problem: str

    def to_dict(self) -> dict[str, Any]:
        return {"nodeId": self.node_id, "problem": self.problem}


@dataclass(frozen=True)
class PhaseOrderViolation:
    orders: tuple[int, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"orders": list(self.orders), "expected": list(range(1, len(self.orders) + 1))}


def _data(snapshot: Project | ProjectData) -> ProjectData:
    return snapshot.data if isinstance(snapshot, Project) else snapshot


# --- RACI ---


def accountable_holder(
    raci: Iterable[RACIEntry],
    entity_type: str,
    entity_id: str,
    *,
    ignore_id: str | None = None,
) -> RACIEntry | None:
    """The entry currently Accountable for an entity, if any."""
    for entry in raci:
        if entry.id == ignore_id:
            continue
        if (
            entry.entity_type == entity_type
            and entry.entity_id == entity_id
            and entry.responsibility == ACCOUNTABLE
        ):
            return entry
    return None


def check_single_accountable(raci: Iterable[RACIEntry], candidate: RACIEntry) -> None:
    """Reject ``candidate`` if another role already holds Accountable for its entity.

    ``candidate`` replaces any existing entry with the same id, and entries of
    the candidate's own role are not counted against it.
    """
    if candidate.responsibility != ACCOUNTABLE:
        return
    holder = accountable_holder(
        (e for e in raci if e.role != candidate.role),
        candidate.entity_type,
        candidate.entity_id,
        ignore_id=candidate.id,
    )
    if holder is not None:
        logger.warning(
            "Rejected second Accountable on %s %s: %s already holds it (attempted by %s)",
            candidate.entity_type,
            candidate.entity_id,
            holder.role,
            candidate.role,
        )
        raise AccountableConflictError(candidate.entity_type, candidate.entity_id, holder.role)


def find_violations(snapshot: Project | ProjectData) -> list[AccountableViolation]:
    """Entities with more than one Accountable role, in first-seen order."""
    holders: dict[tuple[str, str], list[str]] = defaultdict(list)
    for entry in _data(snapshot).raci:
        if entry.responsibility == ACCOUNTABLE and entry.role not in holders[entry.entity_key]:
            holders[entry.entity_key].append(entry.role)
    return [
        AccountableViolation(entity_type, entity_id, tuple(roles))
        for (entity_type, entity_id), roles in holders.items()
        if len(roles) > 1
    ]


# --- WBS ---


def find_wbs_violations(snapshot: Project | ProjectData) -> list[WBSViolation]:
    """Broken parent/children links and wrong levels."""
    nodes = _data(snapshot).wbs
    by_id = {node.id: node for node in nodes}
    problems: list[WBSViolation] = []
    for node in nodes:
        if node.parent_id is None:
            if node.level != 0:
                problems.append(WBSViolation(node.id, f"root node has level {node.level}"))
        else:
            parent = by_id.get(node.parent_id)
            if parent is None:
                problems.append(WBSViolation(node.id, f"parent {node.parent_id} does not exist"))
            else:
                if node.id not in parent.children:
                    problems.append(
                        WBSViolation(node.id, f"parent {parent.id} does not list it as a child")
                    )
                if node.level != parent.level + 1:
                    problems.append(
                        WBSViolation(
                            node.id,
                            f"level {node.level} but parent {parent.id} is level {parent.level}",
                        )
                    )
        for child_id in node.children:
            child = by_id.get(child_id)
            if child is None:
                problems.append(WBSViolation(node.id, f"child {child_id} does not exist"))
            elif child.parent_id != node.id:
                problems.append(
                    WBSViolation(node.id, f"child {child_id} has parent {child.parent_id}")
                )
    return problems


# --- Ordering ---


def renumber(records: Sequence[Record]) -> tuple[Record, ...]:
    """Assign ``order`` 1..N following the current sequence."""
    return tuple(
        record if getattr(record, "order", None) == position else record.evolve(order=position)
        for position, record in enumerate(records, start=1)
    )


def insert_at(records: Sequence[Record], record: Record, position: int | None) -> tuple:
    """Insert at a 1-based ``position`` (clamped; None appends) and renumber."""
    items = list(records)
    if position is None or position > len(items):
        items.append(record)
    else:
        items.insert(max(position, 1) - 1, record)
    return renumber(items)


def check_same_ids(collection: str, existing: Iterable[str], ordered_ids: Sequence[str]) -> None:
    """A reorder must name every existing id exactly once and nothing else."""
    existing_set = set(existing)
    if len(set(ordered_ids)) != len(ordered_ids):
        raise ValidationError(f"Reorder of {collection} lists an id more than once")
    missing = existing_set - set(ordered_ids)
    unknown = set(ordered_ids) - existing_set
    if missing or unknown:
        raise ValidationError(
            f"Reorder of {collection} does not match existing ids "
            f"(missing: {sorted(missing)}, unknown: {sorted(unknown)})"
        )


def find_phase_order_violations(snapshot: Project | ProjectData) -> list[PhaseOrderViolation]:
    phases: tuple[Phase, ...] = _data(snapshot).phases
    orders = tuple(phase.order for phase in phases)
    if sorted(orders) != list(range(1, len(phases) + 1)):
        return [PhaseOrderViolation(orders)]
    return []


def check_project(snapshot: Project | ProjectData) -> dict[str, list[dict[str, Any]]]:
    """Run every batch check and return the findings keyed by rule."""
    return {
        "raci": [v.to_dict() for v in find_violations(snapshot)],
        "wbs": [v.to_dict() for v in find_wbs_violations(snapshot)],
        "phases": [v.to_dict() for v in find_phase_order_violations(snapshot)],
    }
