"""Shared base for frozen, camelCase-serialised project records."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RECORD_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    extra="allow",
)


def new_id() -> str:
    return str(uuid.uuid4())[:8]


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


class Record(BaseModel):
    """An entity owned by a project collection.

    Records are immutable. Attribute names are snake_case; the persisted form
    uses camelCase keys, and keys the model does not know are kept verbatim.
    """

    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_id)

    def evolve(self, **changes: Any) -> Self:
        """Return a re-validated copy with ``changes`` applied."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
