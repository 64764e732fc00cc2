"""Tests for RACI, WBS and phase order rules."""

from __future__ import annotations

import pytest

from pmflow.config import Config
from pmflow.core.rules import (
    accountable_holder,
    check_project,
    check_same_ids,
    find_phase_order_violations,
    find_violations,
    find_wbs_violations,
    insert_at,
    renumber,
)
from pmflow.core.session import ProjectSession
from pmflow.errors import AccountableConflictError, ValidationError
from pmflow.models.phase import Phase
from pmflow.models.project import Project, ProjectData
from pmflow.models.wbs import WBSNode


class TestSingleAccountable:
    def test_second_accountable_role_rejected(self, session):
        session.add_raci_entry(entity_type="task", entity_id="t1", role="PM", responsibility="A")

        with pytest.raises(ValidationError) as exc_info:
            session.add_raci_entry(
                entity_type="task", entity_id="t1", role="Sponsor", responsibility="A"
            )

        exc = exc_info.value
        assert isinstance(exc, AccountableConflictError)
        assert exc.holder_role == "PM"
        assert "PM" in str(exc)
        assert len(session.data.raci) == 1

    def test_other_responsibilities_allowed(self, session):
        session.add_raci_entry(entity_type="task", entity_id="t1", role="PM", responsibility="A")
        session.add_raci_entry(entity_type="task", entity_id="t1", role="Sponsor", responsibility="I")
        session.add_raci_entry(entity_type="task", entity_id="t1", role="Dev", responsibility="R")

        assert len(session.data.raci) == 3
        assert find_violations(session.project) == []

    def test_accountable_scoped_per_entity(self, session):
        session.add_raci_entry(entity_type="task", entity_id="t1", role="PM", responsibility="A")
        session.add_raci_entry(entity_type="task", entity_id="t2", role="Sponsor", responsibility="A")
        session.add_raci_entry(entity_type="phase", entity_id="t1", role="Sponsor", responsibility="A")

        assert len(session.data.raci) == 3

    def test_same_role_readded_replaces_entry(self, session):
        session.add_raci_entry(entity_type="phase", entity_id="init", role="PM", responsibility="R")
        entry = session.add_raci_entry(
            entity_type="phase", entity_id="init", role="PM", responsibility="A"
        )

        assert session.data.raci == (entry,)
        assert accountable_holder(session.data.raci, "phase", "init").role == "PM"

    def test_update_to_accountable_rejected(self, session):
        session.add_raci_entry(entity_type="wbs", entity_id="w1", role="PM", responsibility="A")
        sponsor = session.add_raci_entry(
            entity_type="wbs", entity_id="w1", role="Sponsor", responsibility="C"
        )
        before = session.project

        with pytest.raises(AccountableConflictError):
            session.update_raci_entry(sponsor.id, responsibility="A")

        assert session.project is before

    def test_holder_can_be_updated(self, session):
        pm = session.add_raci_entry(entity_type="wbs", entity_id="w1", role="PM", responsibility="A")

        updated = session.update_raci_entry(pm.id, notes="Owns delivery")

        assert updated.responsibility == "A"
        assert updated.notes == "Owns delivery"

    def test_update_into_existing_role_rejected(self, session):
        session.add_raci_entry(entity_type="task", entity_id="t1", role="PM", responsibility="R")
        dev = session.add_raci_entry(entity_type="task", entity_id="t1", role="Dev", responsibility="R")

        with pytest.raises(ValidationError):
            session.update_raci_entry(dev.id, role="PM")

    def test_check_can_be_disabled(self, project):
        session = ProjectSession(project, config=Config(raci_validate_single_accountable=False))
        session.add_raci_entry(entity_type="task", entity_id="t1", role="PM", responsibility="A")
        session.add_raci_entry(entity_type="task", entity_id="t1", role="Sponsor", responsibility="A")

        violations = find_violations(session.project)

        assert len(violations) == 1
        assert violations[0].entity_type == "task"
        assert violations[0].entity_id == "t1"
        assert violations[0].conflicting_roles == ("PM", "Sponsor")
        assert violations[0].to_dict()["conflictingRoles"] == ["PM", "Sponsor"]


class TestBatchChecks:
    def test_clean_template_has_no_violations(self, project):
        assert check_project(project) == {"raci": [], "wbs": [], "phases": []}

    def test_phase_order_gap_reported(self):
        data = ProjectData(
            phases=(Phase(name="A", order=1), Phase(name="B", order=3)),
        )

        violations = find_phase_order_violations(data)

        assert len(violations) == 1
        assert violations[0].orders == (1, 3)

    def test_broken_wbs_links_reported(self):
        data = ProjectData(
            wbs=(
                WBSNode(id="a", code="1", name="Root", children=("b",)),
                WBSNode(id="b", code="1.1", name="Child", parent_id="a", level=2),
                WBSNode(id="c", code="1.2", name="Stray", parent_id="a", level=1),
                WBSNode(id="d", code="2", name="Orphan", parent_id="gone", level=1),
            )
        )

        problems = {(v.node_id, v.problem) for v in find_wbs_violations(data)}

        assert ("b", "level 2 but parent a is level 0") in problems
        assert ("c", "parent a does not list it as a child") in problems
        assert ("d", "parent gone does not exist") in problems

    def test_findings_do_not_modify_project(self):
        project = Project(
            name="P",
            data=ProjectData(phases=(Phase(name="A", order=4),)),
        )

        findings = check_project(project)

        assert findings["phases"] == [{"orders": [4], "expected": [1]}]
        assert project.data.phases[0].order == 4


class TestOrdering:
    def test_renumber(self):
        phases = (Phase(name="A", order=7), Phase(name="B", order=2))
        assert [p.order for p in renumber(phases)] == [1, 2]

    def test_insert_at_clamps_position(self):
        phases = renumber((Phase(name="A"), Phase(name="B")))
        new = Phase(name="C")

        assert [p.name for p in insert_at(phases, new, 99)] == ["A", "B", "C"]
        assert [p.name for p in insert_at(phases, new, -3)] == ["C", "A", "B"]
        assert [p.name for p in insert_at(phases, new, None)] == ["A", "B", "C"]

    def test_check_same_ids(self):
        check_same_ids("phases", ["a", "b"], ["b", "a"])

        with pytest.raises(ValidationError, match="missing"):
            check_same_ids("phases", ["a", "b"], ["a"])
        with pytest.raises(ValidationError, match="more than once"):
            check_same_ids("phases", ["a", "b"], ["a", "a"])
