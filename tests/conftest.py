"""Shared test fixtures for pmflow."""

from __future__ import annotations

from pathlib import Path

import pytest

from pmflow.config import Config
from pmflow.core.manager import ProjectManager
from pmflow.core.session import ProjectSession
from pmflow.core.templates import template_data
from pmflow.events.bus import EventBus
from pmflow.models.project import Project
from pmflow.storage.sqlite_store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
async def store(tmp_db: Path) -> SQLiteStore:
    s = SQLiteStore(tmp_db)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(workspace_path=tmp_path)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
async def manager(store, event_bus, config) -> ProjectManager:
    return ProjectManager(store, event_bus, config)


@pytest.fixture
def project() -> Project:
    return Project(name="Test Project", data=template_data("waterfall"))


@pytest.fixture
def session(project, config) -> ProjectSession:
    return ProjectSession(project, actor="alice", config=config)
