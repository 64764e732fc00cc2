"""Multi-project manager: project index, current pointer and persisted documents."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pmflow.config import VALID_MODES, Config
from pmflow.core.migrations import migrate
from pmflow.core.rules import check_project
from pmflow.core.session import ProjectSession
from pmflow.core.templates import (
    DEMO_PROJECT_DESCRIPTION,
    DEMO_PROJECT_ID,
    DEMO_PROJECT_NAME,
    demo_project_data,
)
from pmflow.errors import NotFoundError, ProjectImportError, ValidationError
from pmflow.events.bus import EventBus
from pmflow.events.types import EventType
from pmflow.models.base import utc_now
from pmflow.models.project import Project, ProjectData, ProjectMetadata, new_project_id
from pmflow.storage.base import StorageBackend

logger = logging.getLogger(__name__)

PROJECTS_LIST_KEY = "pmp-projects-list"
CURRENT_PROJECT_KEY = "pmp-current-project-id"
PROJECT_KEY_PREFIX = "pmp-project-"

# Collections an importable document must carry, even if empty
_REQUIRED_IMPORT_COLLECTIONS = ("tasks", "risks", "stakeholders")


def project_key(project_id: str) -> str:
    return f"{PROJECT_KEY_PREFIX}{project_id}"


class ProjectManager:
    """Creates, loads, saves and switches between persisted projects."""

    def __init__(
        self,
        store: StorageBackend,
        event_bus: EventBus,
        config: Config | None = None,
    ) -> None:
        """Initialize ProjectManager.

        Args:
            store: Key-value backend holding the index, pointer and documents
            event_bus: Event bus for lifecycle events
            config: Settings passed on to every session this manager opens
        """
        self._store = store
        self._event_bus = event_bus
        self.config = config or Config()

    # --- Index and pointer ---

    async def list_projects(self) -> list[ProjectMetadata]:
        """Return the project index in creation order."""
        rows = await self._store.get(PROJECTS_LIST_KEY) or []
        return [ProjectMetadata.model_validate(row) for row in rows]

    async def current_project_id(self) -> str | None:
        return await self._store.get(CURRENT_PROJECT_KEY)

    async def _index_with(self, metadata: ProjectMetadata) -> list[dict[str, Any]]:
        """Index rows with ``metadata`` replacing its existing row or appended."""
        index = await self.list_projects()
        rows = [m.to_storage() for m in index if m.id != metadata.id]
        position = next((i for i, m in enumerate(index) if m.id == metadata.id), len(rows))
        rows.insert(position, metadata.to_storage())
        return rows

    async def get_stats(self) -> dict[str, Any]:
        """Backend statistics plus the project count and current pointer."""
        stats = await self._store.get_stats()
        stats["projects"] = len(await self.list_projects())
        stats["current_project_id"] = await self.current_project_id()
        return stats

    async def _require_indexed(self, project_id: str) -> None:
        if not any(m.id == project_id for m in await self.list_projects()):
            raise NotFoundError("projects", project_id)

    # --- Lifecycle ---

    async def create_project(
        self,
        name: str,
        description: str = "",
        mode: str | None = None,
        seed_data: ProjectData | Mapping[str, Any] | None = None,
        *,
        project_id: str | None = None,
    ) -> str:
        """Create a project, add it to the index and make it current.

        Args:
            name: Project name (required, cannot be empty)
            description: Optional free-text description
            mode: waterfall, agile or hybrid (defaults to config.default_mode)
            seed_data: Initial collections; a ``mode`` inside it wins over ``mode``
            project_id: Fixed id, used for the demo project

        Returns:
            The new project id

        Raises:
            ValidationError: If name is blank or mode is unknown
        """
        if not name or not name.strip():
            raise ValidationError("Project name cannot be empty")
        mode = mode or self.config.default_mode
        if mode not in VALID_MODES:
            raise ValidationError(f"Invalid mode: {mode}. Must be one of {sorted(VALID_MODES)}")

        if isinstance(seed_data, ProjectData):
            data = seed_data
        else:
            seed = dict(seed_data or {})
            seed.setdefault("mode", mode)
            data = ProjectData.model_validate(seed)

        project = Project(
            id=project_id or new_project_id(),
            name=name.strip(),
            description=description,
            mode=data.mode,
            data=data,
        )
        rows = await self._index_with(project.metadata())
        await self._store.write_batch(
            {
                project_key(project.id): project.to_storage(),
                PROJECTS_LIST_KEY: rows,
                CURRENT_PROJECT_KEY: project.id,
            }
        )
        logger.info("Created project: %s (id=%s, mode=%s)", project.name, project.id, project.mode)

        await self._event_bus.emit(
            EventType.PROJECT_CREATED,
            {"project_id": project.id, "name": project.name, "mode": project.mode},
        )
        return project.id

    async def load_project(self, project_id: str) -> Project:
        """Load a stored project, upgrading older documents in memory.

        Raises:
            NotFoundError: If no document is stored under the id
            ProjectImportError: If the stored document cannot be read
        """
        doc = await self._store.get(project_key(project_id))
        if doc is None:
            raise NotFoundError("projects", project_id)
        doc = migrate(doc)
        try:
            return Project.model_validate(doc)
        except PydanticValidationError as exc:
            raise ProjectImportError(f"Stored project {project_id} is invalid: {exc}") from exc

    async def save_project(self, project: Project) -> Project:
        """Persist a project snapshot and refresh its index row.

        Returns:
            The stored snapshot, with ``updated_at`` refreshed and ``mode`` synced
            to ``data.mode``
        """
        await self._require_indexed(project.id)
        saved = project.model_copy(update={"mode": project.data.mode, "updated_at": utc_now()})
        rows = await self._index_with(saved.metadata())
        await self._store.write_batch(
            {project_key(saved.id): saved.to_storage(), PROJECTS_LIST_KEY: rows}
        )
        logger.debug("Saved project %s", saved.id)

        await self._event_bus.emit(EventType.PROJECT_SAVED, {"project_id": saved.id})
        return saved

    async def open_session(
        self, project_id: str | None = None, *, actor: str | None = None
    ) -> ProjectSession:
        """Open an editing session on a project (the current one by default).

        Raises:
            NotFoundError: If no id is given and there is no current project
        """
        project_id = project_id or await self.current_project_id()
        if project_id is None:
            raise NotFoundError("projects", "<current>")
        project = await self.load_project(project_id)
        return ProjectSession(project, actor=actor, config=self.config)

    async def commit(self, session: ProjectSession) -> Project:
        """Save a session's snapshot, then deliver the events it queued."""
        saved = await self.save_project(session.project)
        session.project = saved
        delivered = await self._event_bus.emit_all(session.drain_events())
        logger.debug("Committed project %s (%d events)", saved.id, delivered)
        return saved

    async def switch_project(self, project_id: str) -> None:
        """Make a project current.

        Raises:
            NotFoundError: If the project is not in the index
        """
        await self._require_indexed(project_id)
        await self._store.set(CURRENT_PROJECT_KEY, project_id)
        logger.info("Switched to project %s", project_id)

        await self._event_bus.emit(EventType.PROJECT_SWITCHED, {"project_id": project_id})

    async def update_project_metadata(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Project:
        """Rename a project or change its description.

        Raises:
            ValidationError: If name is given but blank
        """
        project = await self.load_project(project_id)
        updates: dict[str, Any] = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Project name cannot be empty")
            updates["name"] = name.strip()
        if description is not None:
            updates["description"] = description
        saved = await self.save_project(project.model_copy(update=updates))

        await self._event_bus.emit(
            EventType.PROJECT_UPDATED,
            {"project_id": project_id, "fields": sorted(updates)},
        )
        return saved

    async def duplicate_project(self, project_id: str, new_name: str) -> str:
        """Copy a project under a new id. Entity ids inside it are kept.

        Returns:
            The id of the copy. The current project does not change.
        """
        if not new_name or not new_name.strip():
            raise ValidationError("Project name cannot be empty")
        source = await self.load_project(project_id)
        now = utc_now()
        duplicate = source.model_copy(
            update={
                "id": new_project_id(),
                "name": new_name.strip(),
                "created_at": now,
                "updated_at": now,
            }
        )
        rows = await self._index_with(duplicate.metadata())
        await self._store.write_batch(
            {project_key(duplicate.id): duplicate.to_storage(), PROJECTS_LIST_KEY: rows}
        )
        logger.info("Duplicated project %s as %s (%s)", project_id, duplicate.id, duplicate.name)

        await self._event_bus.emit(
            EventType.PROJECT_DUPLICATED,
            {"project_id": duplicate.id, "source_id": project_id, "name": duplicate.name},
        )
        return duplicate.id

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project and its index row.

        If it was current, the first remaining project becomes current, or the
        pointer is cleared when none remain.

        Returns:
            False if the project did not exist
        """
        index = await self.list_projects()
        remaining = [m for m in index if m.id != project_id]
        stored = await self._store.get(project_key(project_id)) is not None
        if len(remaining) == len(index) and not stored:
            return False

        sets: dict[str, Any] = {PROJECTS_LIST_KEY: [m.to_storage() for m in remaining]}
        deletes = [project_key(project_id)]
        if await self.current_project_id() == project_id:
            if remaining:
                sets[CURRENT_PROJECT_KEY] = remaining[0].id
            else:
                deletes.append(CURRENT_PROJECT_KEY)
        await self._store.write_batch(sets, deletes)
        logger.info("Deleted project %s", project_id)

        await self._event_bus.emit(
            EventType.PROJECT_DELETED,
            {"project_id": project_id, "current": sets.get(CURRENT_PROJECT_KEY)},
        )
        return True

    # --- Import / export ---

    async def export_project(self, project_id: str) -> dict[str, Any]:
        """Return the self-describing camelCase document for a project."""
        doc = (await self.load_project(project_id)).to_storage()

        await self._event_bus.emit(EventType.PROJECT_EXPORTED, {"project_id": project_id})
        return doc

    async def import_project(self, doc: Mapping[str, Any] | str | bytes) -> str:
        """Import an exported document as a new project.

        The document is checked, migrated to the current schema and stored under
        a freshly minted id. Nothing is written unless every step succeeds. The
        current project does not change.

        Args:
            doc: A document dict or its JSON text

        Returns:
            The new project id

        Raises:
            ProjectImportError: If the document is malformed or cannot be stored
        """
        raw = _parse_document(doc)
        try:
            migrated = migrate(raw)
        except ProjectImportError:
            raise
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            logger.warning("Rejected project import during migration: %s", exc)
            raise ProjectImportError(f"Cannot migrate project document: {exc}") from exc
        now = utc_now()
        migrated.update({"id": new_project_id(), "createdAt": now, "updatedAt": now})
        try:
            project = Project.model_validate(migrated)
        except PydanticValidationError as exc:
            logger.warning("Rejected project import: %s", exc)
            raise ProjectImportError(f"Invalid project document: {exc}") from exc

        findings = check_project(project.data)
        if any(findings.values()):
            logger.warning(
                "Imported project %s has existing rule violations: %s",
                project.id,
                {rule: len(found) for rule, found in findings.items() if found},
            )

        rows = await self._index_with(project.metadata())
        try:
            await self._store.write_batch(
                {project_key(project.id): project.to_storage(), PROJECTS_LIST_KEY: rows}
            )
        except Exception as exc:
            logger.warning("Failed to store imported project %s: %s", project.id, exc)
            raise ProjectImportError(f"Could not store imported project: {exc}") from exc
        logger.info("Imported project: %s (id=%s)", project.name, project.id)

        await self._event_bus.emit(
            EventType.PROJECT_IMPORTED, {"project_id": project.id, "name": project.name}
        )
        return project.id

    async def ensure_demo_project(self) -> bool:
        """Create the demo project if enabled and missing.

        The demo becomes current only when no project is current yet.

        Returns:
            True if the demo project was created
        """
        if not self.config.create_demo_project:
            return False
        indexed = any(m.id == DEMO_PROJECT_ID for m in await self.list_projects())
        stored = await self._store.get(project_key(DEMO_PROJECT_ID)) is not None
        if indexed and stored:
            return False

        previous = await self.current_project_id()
        await self.create_project(
            DEMO_PROJECT_NAME,
            DEMO_PROJECT_DESCRIPTION,
            seed_data=demo_project_data(),
            project_id=DEMO_PROJECT_ID,
        )
        if previous is not None and previous != DEMO_PROJECT_ID:
            await self._store.set(CURRENT_PROJECT_KEY, previous)
        return True


def _parse_document(doc: Mapping[str, Any] | str | bytes) -> dict[str, Any]:
    if isinstance(doc, (str, bytes)):
        try:
            doc = json.loads(doc)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ProjectImportError(f"Invalid JSON: {exc}") from exc
    if not isinstance(doc, Mapping):
        raise ProjectImportError("Project document must be an object")

    missing = [key for key in ("data", "mode", "name") if not doc.get(key)]
    if missing:
        raise ProjectImportError(f"Project document is missing: {', '.join(missing)}")
    data = doc["data"]
    if not isinstance(data, Mapping):
        raise ProjectImportError("Project data must be an object")
    absent = [f"data.{key}" for key in _REQUIRED_IMPORT_COLLECTIONS if data.get(key) is None]
    if absent:
        raise ProjectImportError(f"Project document is missing: {', '.join(absent)}")
    return dict(doc)
