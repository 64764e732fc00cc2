"""Tests for the ProjectSession mutation API."""

from __future__ import annotations

import pytest

from pmflow.config import Config
from pmflow.core.session import ProjectSession
from pmflow.errors import NotFoundError, ValidationError
from pmflow.events.types import EventType
from pmflow.models.project import Project, ProjectData
from pmflow.models.task import Task


def _phase_ids(session: ProjectSession) -> list[str]:
    return [p.id for p in session.data.phases]


def _orders(session: ProjectSession) -> list[int]:
    return [p.order for p in session.data.phases]


# --- Create ---


def test_create_task_defaults(session):
    task = session.add_task(title="Write charter")

    assert task.status == "backlog"
    assert task.priority == "medium"
    assert task.created_by == "alice"
    assert task.created_at
    assert len(task.id) == 8
    assert session.data.tasks == (task,)


def test_create_assigns_unique_ids(session):
    ids = {session.add_task(title=f"Task {i}").id for i in range(20)}
    assert len(ids) == 20


def test_create_rejects_blank_required_field(session):
    before = session.project

    with pytest.raises(ValidationError, match="title"):
        session.add_task(title="   ")

    assert session.project is before
    assert session.data.tasks == ()


def test_create_rejects_missing_required_field(session):
    with pytest.raises(ValidationError):
        session.add_backlog_item(title="Login")


def test_create_rejects_caller_supplied_id(session):
    with pytest.raises(ValidationError):
        session.add_task(id="t1", title="X")


def test_create_rejects_invalid_enum_value(session):
    with pytest.raises(ValidationError) as exc_info:
        session.add_task(title="X", status="blocked")

    assert isinstance(exc_info.value, ValueError)
    assert session.data.tasks == ()


def test_create_accepts_partial_mapping(session):
    risk = session.create("risks", {"title": "Vendor delay"}, owner="PM")
    assert risk.title == "Vendor delay"
    assert risk.owner == "PM"


def test_unknown_collection_raises(session):
    with pytest.raises(NotFoundError):
        session.create("widgets", {"name": "x"})


def test_task_history_is_read_only(session):
    task = session.add_task(title="X")
    with pytest.raises(ValidationError):
        session.create("task_history", {"task_id": task.id, "action": "updated"})
    with pytest.raises(ValidationError):
        session.remove("task_history", session.data.task_history[0].id)


# --- Update ---


def test_status_change_records_history(session):
    task = session.add_task(title="X", status="todo", priority="medium")

    session.update_task(task.id, status="done")

    changes = [e for e in session.data.task_history if e.action == "status_changed"]
    assert len(changes) == 1
    assert changes[0].task_id == task.id
    assert changes[0].field == "status"
    assert changes[0].old_value == "todo"
    assert changes[0].new_value == "done"
    assert changes[0].user_name == "alice"


def test_create_task_records_created_entry(session):
    task = session.add_task(title="X")

    assert [e.action for e in session.history_for(task.id)] == ["created"]


def test_history_for_is_newest_first(session):
    task = session.add_task(title="X")
    session.update_task(task.id, status="todo")
    session.update_task(task.id, priority="high")

    actions = [e.action for e in session.history_for(task.id)]
    assert actions == ["priority_changed", "status_changed", "created"]


def test_assignee_and_tag_changes_are_tracked(session):
    task = session.add_task(title="X", tags=["backend"])

    session.update_task(task.id, assignee="Bob", tags=["frontend"])

    entries = session.history_for(task.id)
    assigned = [e for e in entries if e.action == "assigned"]
    assert assigned[0].old_value == ""
    assert assigned[0].new_value == "Bob"
    assert [e.new_value for e in entries if e.action == "tag_added"] == ["frontend"]
    assert [e.old_value for e in entries if e.action == "tag_removed"] == ["backend"]


def test_untracked_field_change_records_nothing(session):
    task = session.add_task(title="X")
    session.update_task(task.id, description="More detail")

    assert len(session.history_for(task.id)) == 1


def test_update_stamps_actor_and_time(session):
    task = session.add_task(title="X")

    updated = session.update_task(task.id, title="Y")

    assert updated.title == "Y"
    assert updated.updated_by == "alice"
    assert updated.updated_at is not None
    assert updated.created_at == task.created_at


def test_update_unknown_id_raises(session):
    with pytest.raises(NotFoundError) as exc_info:
        session.update_task("missing", title="Y")
    assert exc_info.value.collection == "tasks"
    assert exc_info.value.entity_id == "missing"


def test_update_rejects_id_change(session):
    task = session.add_task(title="X")
    with pytest.raises(ValidationError):
        session.update_task(task.id, id="other")


def test_update_rejects_blanking_required_field(session):
    task = session.add_task(title="X")
    before = session.project

    with pytest.raises(ValidationError):
        session.update_task(task.id, title="")

    assert session.project is before
    assert session.get("tasks", task.id).title == "X"


def test_update_rejects_unknown_field(session):
    task = session.add_task(title="X", status="todo")
    before = session.project

    with pytest.raises(ValidationError, match="stauts"):
        session.update_task(task.id, stauts="done")

    assert session.project is before
    assert session.get("tasks", task.id).status == "todo"
    assert "stauts" not in session.get("tasks", task.id).to_storage()


def test_create_rejects_unknown_field(session):
    with pytest.raises(ValidationError, match="colour"):
        session.add_risk(title="R", colour="red")
    assert session.data.risks == ()


def test_create_accepts_camel_case_keys(session):
    task = session.add_task(title="X", **{"phaseId": "init"})
    assert task.phase_id == "init"


def test_update_keeps_fields_carried_by_stored_record():
    stored = Task.model_validate({"id": "t1", "title": "Imported", "legacyFlag": True})
    session = ProjectSession(Project(name="P", data=ProjectData(tasks=(stored,))))

    task = session.update_task("t1", legacyFlag=False, status="done")

    assert task.status == "done"
    assert task.model_extra["legacyFlag"] is False


def test_update_rejects_order_on_ordered_collection(session):
    with pytest.raises(ValidationError):
        session.update_phase("init", order=3)


def test_risk_score_follows_probability_and_impact(session):
    risk = session.add_risk(title="Vendor lock-in", probability="high", impact="critical")
    assert risk.score == 12

    risk = session.update_risk(risk.id, impact="low")
    assert risk.score == 3


def test_risk_score_ignores_supplied_value(session):
    risk = session.add_risk(title="R", probability="low", impact="low", score=99)
    assert risk.score == 1


# --- Phases and ordering ---


def test_delete_phase_renumbers_remaining(session):
    assert _orders(session) == [1, 2, 3, 4, 5]

    assert session.delete_phase("plan") is True

    assert _phase_ids(session) == ["init", "exec", "mon", "close"]
    assert _orders(session) == [1, 2, 3, 4]


def test_add_phase_appends_by_default(session):
    phase = session.add_phase(name="Handover", description="Transfer to operations")

    assert phase.order == 6
    assert _phase_ids(session)[-1] == phase.id


def test_add_phase_at_position(session):
    phase = session.add_phase(name="Design", description="Design work", order=2)

    assert phase.order == 2
    assert _phase_ids(session) == ["init", phase.id, "plan", "exec", "mon", "close"]
    assert _orders(session) == [1, 2, 3, 4, 5, 6]


def test_reorder_phases(session):
    session.reorder_phases(["close", "init", "plan", "exec", "mon"])

    assert _phase_ids(session) == ["close", "init", "plan", "exec", "mon"]
    assert _orders(session) == [1, 2, 3, 4, 5]


@pytest.mark.parametrize(
    "ordered_ids",
    [
        ["init", "plan", "exec", "mon"],
        ["init", "plan", "exec", "mon", "close", "extra"],
        ["init", "init", "exec", "mon", "close"],
    ],
)
def test_reorder_rejects_mismatched_ids(session, ordered_ids):
    before = session.project

    with pytest.raises(ValidationError):
        session.reorder_phases(ordered_ids)

    assert session.project is before


def test_reorder_unordered_collection_rejected(session):
    with pytest.raises(ValidationError):
        session.reorder("tasks", [])


def test_reorder_backlog(session):
    a = session.add_backlog_item(title="A", description="a")
    b = session.add_backlog_item(title="B", description="b")

    session.reorder_backlog([b.id, a.id])

    assert [(i.id, i.order) for i in session.data.backlog] == [(b.id, 1), (a.id, 2)]


# --- Delete and cascade ---


def test_remove_absent_id_is_noop(session):
    before = session.project

    assert session.delete_task("missing") is False
    assert session.remove("wbs", "missing") is False

    assert session.project is before
    assert session.drain_events() == []


def test_delete_task_cascades(session):
    task = session.add_task(title="X")
    session.update_task(task.id, status="todo")
    other = session.add_task(title="Y")
    session.add_raci_entry(entity_type="task", entity_id=task.id, role="PM", responsibility="R")
    req = session.add_requirement(title="Login", linked_tasks=[task.id, other.id])
    node = session.add_wbs_node(name="Build", linked_tasks=[task.id])
    risk = session.add_risk(title="R", linked_task_ids=[task.id])

    session.delete_task(task.id)

    assert session.find("tasks", task.id) is None
    assert session.data.raci == ()
    assert all(e.task_id != task.id for e in session.data.task_history)
    assert session.history_for(other.id)
    assert session.get("requirements", req.id).linked_tasks == (other.id,)
    assert session.get("wbs", node.id).linked_tasks == ()
    assert session.get("risks", risk.id).linked_task_ids == ()


def test_delete_phase_leaves_task_phase_dangling(session):
    task = session.add_task(title="X", phase_id="plan")
    assert session.phase_for_task(task).id == "plan"
    session.add_raci_entry(entity_type="phase", entity_id="plan", role="PM", responsibility="A")

    session.delete_phase("plan")

    assert session.get("tasks", task.id).phase_id == "plan"
    assert session.phase_for_task(task.id) is None
    assert session.data.raci == ()


def test_delete_sprint_unsets_and_pulls_references(session):
    sprint = session.add_sprint(name="Sprint 1")
    item = session.add_backlog_item(title="Login", description="Login form")
    session.move_backlog_item(item.id, sprint.id)
    release = session.add_release(name="MVP", sprints=[sprint.id])

    session.delete_sprint(sprint.id)

    assert session.get("backlog", item.id).sprint_id is None
    assert session.get("releases", release.id).sprints == ()


def test_delete_backlog_item_leaves_sprint_membership(session):
    sprint = session.add_sprint(name="Sprint 1")
    item = session.add_backlog_item(title="Login", description="Login form")
    session.move_backlog_item(item.id, sprint.id)

    session.delete_backlog_item(item.id)

    assert session.get("sprints", sprint.id).items == ()


def test_delete_requirement_unsets_parent(session):
    parent = session.add_requirement(title="Auth")
    child = session.add_requirement(title="Login", parent_requirement_id=parent.id)
    session.update_requirement(parent.id, child_requirement_ids=[child.id])

    session.delete_requirement(parent.id)

    assert session.get("requirements", child.id).parent_requirement_id is None


# --- Backlog movement ---


def test_move_backlog_item_between_sprints(session):
    s1 = session.add_sprint(name="Sprint 1")
    s2 = session.add_sprint(name="Sprint 2")
    item = session.add_backlog_item(title="Login", description="Login form")

    session.move_backlog_item(item.id, s1.id)
    moved = session.move_backlog_item(item.id, s2.id)

    assert moved.sprint_id == s2.id
    assert session.get("sprints", s1.id).items == ()
    assert session.get("sprints", s2.id).items == (item.id,)

    session.move_backlog_item(item.id, None)
    assert session.get("backlog", item.id).sprint_id is None
    assert session.get("sprints", s2.id).items == ()


def test_move_backlog_item_to_unknown_sprint(session):
    item = session.add_backlog_item(title="Login", description="Login form")
    with pytest.raises(NotFoundError):
        session.move_backlog_item(item.id, "missing")


# --- Requirements ---


def test_requirement_codes_are_generated_per_type(session):
    assert session.add_requirement(title="Login").code == "FR-001"
    assert session.add_requirement(title="Logout").code == "FR-002"
    assert session.add_requirement(title="Fast", type="non-functional").code == "NFR-001"
    assert session.add_requirement(title="Audit", code="REG-7").code == "REG-7"


def test_requirement_code_generation_can_be_disabled(project):
    session = ProjectSession(project, config=Config(requirements_auto_generate_code=False))
    assert session.add_requirement(title="Login").code == ""


# --- Custom roles and mode ---


def test_custom_roles(session):
    assert session.add_custom_role("  QA Lead ") == "QA Lead"
    with pytest.raises(ValidationError):
        session.add_custom_role("QA Lead")
    with pytest.raises(ValidationError):
        session.add_custom_role(" ")

    session.add_raci_entry(entity_type="phase", entity_id="init", role="QA Lead", responsibility="C")
    session.add_raci_entry(entity_type="phase", entity_id="init", role="PM", responsibility="A")

    assert session.delete_custom_role("QA Lead") is True
    assert session.data.custom_roles == ()
    assert [e.role for e in session.data.raci] == ["PM"]
    assert session.delete_custom_role("QA Lead") is False


def test_set_mode(session):
    session.set_mode("agile")
    assert session.project.mode == "agile"
    assert session.data.mode == "agile"

    with pytest.raises(ValidationError):
        session.set_mode("kanban")


# --- Events and history limits ---


def test_events_are_queued_until_drained(session):
    task = session.add_task(title="X")

    events = session.drain_events()

    assert [e for e, _ in events] == [EventType.ENTITY_CREATED, EventType.HISTORY_RECORDED]
    assert events[0][1]["entity_id"] == task.id
    assert events[0][1]["collection"] == "tasks"
    assert events[0][1]["project_id"] == session.project.id
    assert session.drain_events() == []


def test_rejected_mutation_queues_nothing(session):
    with pytest.raises(ValidationError):
        session.add_task(title="")
    assert session.drain_events() == []


def test_max_history_entries_trims_oldest(project):
    session = ProjectSession(project, config=Config(max_history_entries=2))
    task = session.add_task(title="X")
    session.update_task(task.id, status="todo")
    session.update_task(task.id, status="done")

    assert [e.action for e in session.data.task_history] == ["status_changed", "status_changed"]
    assert session.data.task_history[-1].new_value == "done"


def test_actor_defaults_to_config(project):
    session = ProjectSession(project)
    assert session.actor == "system"
    assert session.add_task(title="X").created_by == "system"


def test_snapshots_are_independent():
    session = ProjectSession(Project(name="P"))
    first = session.project

    session.add_task(title="X")

    assert first.data.tasks == ()
    assert len(session.project.data.tasks) == 1
