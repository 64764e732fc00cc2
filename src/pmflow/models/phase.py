"""Project phase model."""

from __future__ import annotations

from typing import Literal

from pmflow.models.base import Record

PhaseType = Literal["initiation", "planning", "execution", "monitoring", "closing", "custom"]


class Phase(Record):
    """A lifecycle phase. ``order`` is dense and 1-based within a project."""

    name: str
    type: PhaseType = "custom"
    description: str = ""
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    tools: tuple[str, ...] = ()
    order: int = 0
    is_custom: bool | None = None
