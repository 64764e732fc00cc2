"""Event type constants for pmflow."""

from enum import StrEnum


class EventType(StrEnum):
    PROJECT_CREATED = "project.created"
    PROJECT_UPDATED = "project.updated"
    PROJECT_SAVED = "project.saved"
    PROJECT_SWITCHED = "project.switched"
    PROJECT_DUPLICATED = "project.duplicated"
    PROJECT_DELETED = "project.deleted"
    PROJECT_IMPORTED = "project.imported"
    PROJECT_EXPORTED = "project.exported"

    ENTITY_CREATED = "entity.created"
    ENTITY_UPDATED = "entity.updated"
    ENTITY_DELETED = "entity.deleted"
    ENTITIES_REORDERED = "entity.reordered"

    HISTORY_RECORDED = "history.recorded"
