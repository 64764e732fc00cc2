"""pmflow data models."""

from pmflow.models.backlog import BacklogItem, Release, Sprint
from pmflow.models.phase import Phase
from pmflow.models.project import SCHEMA_VERSION, Project, ProjectData, ProjectMetadata
from pmflow.models.raci import RACIEntry
from pmflow.models.requirement import Requirement
from pmflow.models.risk import Risk, risk_score
from pmflow.models.stakeholder import Stakeholder
from pmflow.models.task import Task, TaskHistoryEntry, TaskTag
from pmflow.models.team import GanttTask, TeamMember
from pmflow.models.wbs import WBSNode

__all__ = [
    "SCHEMA_VERSION",
    "BacklogItem",
    "GanttTask",
    "Phase",
    "Project",
    "ProjectData",
    "ProjectMetadata",
    "RACIEntry",
    "Release",
    "Requirement",
    "Risk",
    "Sprint",
    "Stakeholder",
    "Task",
    "TaskHistoryEntry",
    "TaskTag",
    "TeamMember",
    "WBSNode",
    "risk_score",
]
