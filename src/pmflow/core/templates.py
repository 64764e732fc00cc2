"""Default phase sets and the demo project seed."""

from __future__ import annotations

from typing import Any

from pmflow.models.project import ProjectData

DEMO_PROJECT_ID = "demo-project-pmp-flow-designer"
DEMO_PROJECT_NAME = "Demo Project - PMP Flow Designer"
DEMO_PROJECT_DESCRIPTION = (
    "Demonstration project with sample phases, tasks, backlog, risks, stakeholders, "
    "requirements, WBS and RACI assignments."
)

WATERFALL_PHASES: tuple[dict[str, Any], ...] = (
    {
        "id": "init",
        "name": "Initiation",
        "type": "initiation",
        "description": "Define the project at a high level and obtain authorization to start.",
        "inputs": ("Business Case", "Benefits Management Plan", "Agreements"),
        "outputs": ("Project Charter", "Stakeholder Register", "Assumption Log"),
        "tools": ("Expert Judgment", "Data Gathering", "Meetings"),
        "order": 1,
    },
    {
        "id": "plan",
        "name": "Planning",
        "type": "planning",
        "description": "Establish the scope, refine objectives, and define actions required.",
        "inputs": ("Project Charter", "Organizational Process Assets"),
        "outputs": ("Project Management Plan", "WBS", "Schedule Baseline", "Risk Register"),
        "tools": ("Decomposition", "Critical Path Method", "Bottom-Up Estimating"),
        "order": 2,
    },
    {
        "id": "exec",
        "name": "Execution",
        "type": "execution",
        "description": "Complete the work defined in the project management plan.",
        "inputs": ("Project Management Plan", "Approved Change Requests"),
        "outputs": ("Deliverables", "Work Performance Data", "Change Requests"),
        "tools": ("PMIS", "Conflict Management"),
        "order": 3,
    },
    {
        "id": "mon",
        "name": "Monitoring & Control",
        "type": "monitoring",
        "description": "Track, review, and regulate progress and performance.",
        "inputs": ("Project Management Plan", "Work Performance Data"),
        "outputs": ("Work Performance Reports", "Change Requests"),
        "tools": ("Earned Value Analysis", "Variance Analysis", "Root Cause Analysis"),
        "order": 4,
    },
    {
        "id": "close",
        "name": "Closing",
        "type": "closing",
        "description": "Finalize all activities and formally close the project.",
        "inputs": ("Project Charter", "Accepted Deliverables"),
        "outputs": ("Final Report", "Organizational Process Assets Updates"),
        "tools": ("Expert Judgment", "Meetings"),
        "order": 5,
    },
)

AGILE_PHASES: tuple[dict[str, Any], ...] = (
    {
        "id": "vision",
        "name": "Product Vision",
        "type": "initiation",
        "description": "Define the product vision and initial backlog.",
        "inputs": ("Market Research", "Stakeholder Input", "Business Goals"),
        "outputs": ("Product Vision", "Initial Product Backlog", "Release Roadmap"),
        "tools": ("User Story Mapping", "Design Thinking"),
        "order": 1,
    },
    {
        "id": "release-plan",
        "name": "Release Planning",
        "type": "planning",
        "description": "Plan releases and prioritize the product backlog.",
        "inputs": ("Product Backlog", "Team Velocity"),
        "outputs": ("Release Plan", "Prioritized Backlog", "Definition of Done"),
        "tools": ("Planning Poker", "MoSCoW Prioritization"),
        "order": 2,
    },
    {
        "id": "sprint",
        "name": "Sprint Execution",
        "type": "execution",
        "description": "Execute sprints to deliver incremental value.",
        "inputs": ("Sprint Backlog", "Definition of Done", "Team Capacity"),
        "outputs": ("Working Increment", "Updated Burndown"),
        "tools": ("Daily Standups", "Pair Programming", "CI/CD"),
        "order": 3,
    },
    {
        "id": "review",
        "name": "Sprint Review & Retro",
        "type": "monitoring",
        "description": "Review the increment and improve the process.",
        "inputs": ("Working Increment", "Stakeholder Feedback"),
        "outputs": ("Updated Backlog", "Process Improvements"),
        "tools": ("Demo Sessions", "Retrospective Techniques"),
        "order": 4,
    },
    {
        "id": "release",
        "name": "Release",
        "type": "closing",
        "description": "Release the product increment to production.",
        "inputs": ("Tested Increment", "Release Checklist"),
        "outputs": ("Production Release", "Release Notes"),
        "tools": ("Feature Flags", "Rollback Procedures"),
        "order": 5,
    },
)

PROJECT_ROLES = ("Project Manager", "Sponsor", "Team Members", "Stakeholders")
AGILE_ROLES = ("Product Owner", "Scrum Master", "Development Team", "Stakeholders")


def default_phases(mode: str) -> tuple[dict[str, Any], ...]:
    """Phase template for a mode. Hybrid projects start from the waterfall set."""
    return AGILE_PHASES if mode == "agile" else WATERFALL_PHASES


def template_data(mode: str) -> ProjectData:
    """Empty project seeded with the default phases for ``mode``."""
    return ProjectData.model_validate({"mode": mode, "phases": default_phases(mode)})


def _task(task_id: str, title: str, status: str, priority: str, phase_id: str, assignee: str):
    return {
        "id": task_id,
        "title": title,
        "status": status,
        "priority": priority,
        "phase_id": phase_id,
        "assignee": assignee,
        "created_at": "2024-01-01T00:00:00+00:00",
    }


def _raci(phase_id: str, sponsor: str, manager: str, team: str, stakeholders: str):
    cells = {
        "Sponsor": sponsor,
        "Project Manager": manager,
        "Team Members": team,
        "Stakeholders": stakeholders,
    }
    return [
        {
            "id": f"raci-{phase_id}-{role.lower().replace(' ', '-')}",
            "entity_type": "phase",
            "entity_id": phase_id,
            "role": role,
            "responsibility": value,
        }
        for role, value in cells.items()
    ]


def demo_project_data() -> ProjectData:
    """Hybrid sample project touching every collection."""
    raci = [
        *_raci("init", "A", "R", "I", "C"),
        *_raci("plan", "I", "A", "R", "C"),
        *_raci("exec", "I", "A", "R", "I"),
        *_raci("mon", "A", "R", "C", "I"),
        *_raci("close", "A", "R", "I", "I"),
    ]
    return ProjectData.model_validate(
        {
            "mode": "hybrid",
            "phases": WATERFALL_PHASES,
            "tasks": [
                _task("t1", "Create Project Charter", "done", "high", "init", "PM"),
                _task("t2", "Identify Stakeholders", "done", "high", "init", "PM"),
                _task("t3", "Develop WBS", "in-progress", "high", "plan", "PM"),
                _task("t4", "Create Schedule", "todo", "high", "plan", "PM"),
                _task("t5", "Risk Assessment", "todo", "medium", "plan", "Risk Lead"),
                _task("t6", "Team Kickoff", "backlog", "medium", "exec", "PM"),
                _task("t7", "Quality Reviews", "backlog", "medium", "mon", "QA Lead"),
                _task("t8", "Lessons Learned", "backlog", "low", "close", "PM"),
            ],
            "backlog": [
                {"id": "b1", "title": "User Authentication",
                 "description": "Implement login/logout functionality",
                 "story_points": 8, "priority": "high", "order": 1, "sprint_id": "sp1"},
                {"id": "b2", "title": "Dashboard UI",
                 "description": "Create main dashboard interface",
                 "story_points": 13, "priority": "high", "order": 2, "sprint_id": "sp1"},
                {"id": "b3", "title": "API Integration",
                 "description": "Connect to backend services",
                 "story_points": 5, "type": "technical", "order": 3, "sprint_id": "sp2"},
                {"id": "b4", "title": "Fix Login Bug",
                 "description": "Address session timeout issue",
                 "story_points": 3, "priority": "high", "type": "bug", "order": 4},
            ],
            "sprints": [
                {"id": "sp1", "name": "Sprint 1", "goal": "Core authentication and dashboard",
                 "start_date": "2024-01-15", "end_date": "2024-01-29", "velocity": 21,
                 "items": ["b1", "b2"]},
                {"id": "sp2", "name": "Sprint 2", "goal": "API integration",
                 "start_date": "2024-01-29", "end_date": "2024-02-12", "items": ["b3"]},
            ],
            "releases": [
                {"id": "rel1", "name": "MVP Release", "version": "1.0.0",
                 "target_date": "2024-02-26", "sprints": ["sp1", "sp2"],
                 "status": "in-progress"},
            ],
            "raci": raci,
            "wbs": [
                {"id": "w1", "code": "1", "name": "Project Management", "level": 0,
                 "children": ["w2", "w3"]},
                {"id": "w2", "code": "1.1", "name": "Planning", "parent_id": "w1", "level": 1,
                 "children": ["w4", "w5"]},
                {"id": "w3", "code": "1.2", "name": "Control", "parent_id": "w1", "level": 1},
                {"id": "w4", "code": "1.1.1", "name": "Schedule Development",
                 "parent_id": "w2", "level": 2},
                {"id": "w5", "code": "1.1.2", "name": "Budget Estimation",
                 "parent_id": "w2", "level": 2},
                {"id": "w6", "code": "2", "name": "Product Development", "level": 0,
                 "children": ["w7", "w8"]},
                {"id": "w7", "code": "2.1", "name": "Design", "parent_id": "w6", "level": 1},
                {"id": "w8", "code": "2.2", "name": "Implementation", "parent_id": "w6",
                 "level": 1},
            ],
            "risks": [
                {"id": "rk1", "title": "Resource Availability", "probability": "medium",
                 "impact": "high", "response": "mitigate", "owner": "PM",
                 "status": "mitigating"},
                {"id": "rk2", "title": "Scope Creep", "probability": "high", "impact": "high",
                 "response": "avoid", "owner": "PM", "status": "analyzing"},
                {"id": "rk3", "title": "Budget Overrun", "probability": "low",
                 "impact": "critical", "response": "transfer", "owner": "PM",
                 "status": "analyzing"},
            ],
            "stakeholders": [
                {"id": "s1", "name": "John Smith", "role": "Executive Sponsor",
                 "influence": "high", "interest": "high", "engagement_level": "leading"},
                {"id": "s2", "name": "Sarah Johnson", "role": "Product Owner",
                 "influence": "high", "interest": "high", "engagement_level": "supportive"},
                {"id": "s3", "name": "Emily Brown", "role": "QA Manager",
                 "influence": "medium", "interest": "medium", "engagement_level": "neutral"},
            ],
            "requirements": [
                {"id": "req1", "code": "FR-001", "title": "User Login",
                 "description": "Users must be able to log in securely",
                 "priority": "high", "status": "implemented", "linked_tasks": ["t1"]},
                {"id": "req2", "code": "NFR-001", "title": "Performance",
                 "description": "Page load time under 2 seconds",
                 "type": "non-functional", "linked_tasks": []},
            ],
            "gantt_tasks": [
                {"id": "g1", "name": "Project Initiation", "start_date": "2024-01-01",
                 "end_date": "2024-01-14", "progress": 100, "phase_id": "init"},
                {"id": "g2", "name": "Planning Phase", "start_date": "2024-01-15",
                 "end_date": "2024-02-14", "progress": 60, "phase_id": "plan",
                 "dependencies": ["g1"]},
            ],
            "team_members": [
                {"id": "m1", "name": "Alex Martin", "email": "alex@example.com",
                 "role": "project-manager", "linked_phase_ids": ["init", "plan"]},
            ],
        }
    )
