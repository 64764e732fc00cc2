"""Exception taxonomy for rejected mutations and malformed documents."""

from __future__ import annotations


class PMFlowError(Exception):
    """Base class for every error raised by pmflow."""


class ValidationError(PMFlowError, ValueError):
    """A mutation was rejected because it would break an invariant."""


class AccountableConflictError(ValidationError):
    """A second role tried to become Accountable for the same entity."""

    def __init__(self, entity_type: str, entity_id: str, holder_role: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.holder_role = holder_role
        super().__init__(
            f"{entity_type} {entity_id} already has an Accountable role: {holder_role}"
        )


class NotFoundError(PMFlowError, LookupError):
    """An operation referenced an id that does not exist."""

    def __init__(self, collection: str, entity_id: str) -> None:
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"{collection} not found: {entity_id}")

    def __str__(self) -> str:
        return f"{self.collection} not found: {self.entity_id}"


class ProjectImportError(PMFlowError, ValueError):
    """A persisted project document could not be imported."""
