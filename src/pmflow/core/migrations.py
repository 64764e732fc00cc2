"""Upgrade stored or imported project documents to the current schema.

Documents are plain camelCase dicts as produced by ``Project.to_storage()``.
Version 1 is any document without ``schemaVersion``. Each step takes a document
at version N and returns one at version N + 1.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from pmflow.errors import ProjectImportError
from pmflow.models.base import new_id
from pmflow.models.project import SCHEMA_VERSION

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = SCHEMA_VERSION

COLLECTION_KEYS = (
    "phases",
    "tasks",
    "backlog",
    "sprints",
    "releases",
    "raci",
    "wbs",
    "risks",
    "stakeholders",
    "requirements",
    "ganttTasks",
    "teamMembers",
    "customPhases",
    "taskHistory",
    "customRoles",
)

Document = dict[str, Any]


def document_version(doc: Document) -> int:
    version = doc.get("schemaVersion", 1)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise ProjectImportError(f"Invalid schemaVersion: {version!r}")
    return version


def _legacy_raci_row(row: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(row, dict) or "phaseId" not in row or "entityId" in row:
        return row
    converted = {k: v for k, v in row.items() if k != "phaseId"}
    converted.setdefault("id", new_id())
    converted["entityType"] = "phase"
    converted["entityId"] = row["phaseId"]
    return converted


def _v1_to_v2(doc: Document) -> Document:
    data = doc.setdefault("data", {})
    if not isinstance(data, dict):
        raise ProjectImportError("Project data must be an object")
    for key in COLLECTION_KEYS:
        if data.get(key) is None:
            data[key] = []
        elif not isinstance(data[key], list):
            raise ProjectImportError(f"Project data.{key} must be a list")
    data.setdefault("mode", doc.get("mode", "waterfall"))
    data["raci"] = [_legacy_raci_row(row) for row in data["raci"]]
    return doc


MIGRATIONS: dict[int, Callable[[Document], Document]] = {
    1: _v1_to_v2,
}


def needs_migration(doc: Document) -> bool:
    return document_version(doc) < CURRENT_SCHEMA_VERSION


def migrate(doc: Document) -> Document:
    """Return a migrated copy of ``doc``; the input is left untouched."""
    version = document_version(doc)
    if version > CURRENT_SCHEMA_VERSION:
        raise ProjectImportError(
            f"Document schema version {version} is newer than supported "
            f"version {CURRENT_SCHEMA_VERSION}"
        )
    result = copy.deepcopy(doc)
    while version < CURRENT_SCHEMA_VERSION:
        result = MIGRATIONS[version](result)
        version += 1
        result["schemaVersion"] = version
        logger.info("Migrated project %s to schema version %d", result.get("id", "?"), version)
    return result
