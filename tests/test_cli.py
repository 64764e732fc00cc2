"""CLI smoke tests."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pmflow.cli import main
from pmflow.core.templates import DEMO_PROJECT_ID, DEMO_PROJECT_NAME


@pytest.fixture
def workspace(tmp_path):
    return tmp_path / "ws"


@pytest.fixture
def invoke(workspace):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(
            main,
            ["--workspace", str(workspace), *args],
            env={"PMFLOW_LOG_LEVEL": "WARNING"},
        )

    return _invoke


@pytest.fixture
def initialized(invoke):
    result = invoke("init")
    assert result.exit_code == 0, result.output
    return invoke


def test_init_creates_workspace_and_demo(invoke, workspace):
    result = invoke("init")

    assert result.exit_code == 0, result.output
    assert "Initialized workspace" in result.output
    assert "Created demo project" in result.output
    assert (workspace / "pmflow.db").exists()
    assert (workspace / "config.yaml").exists()


def test_init_without_demo(invoke):
    assert invoke("init", "--no-demo").exit_code == 0

    result = invoke("project", "list")

    assert result.exit_code == 0
    assert "No projects" in result.output


def test_commands_require_init(invoke):
    result = invoke("status")

    assert result.exit_code == 1
    assert "pmflow init" in result.output


def test_status_shows_current_project(initialized):
    result = initialized("status")

    assert result.exit_code == 0, result.output
    assert "Current Project" in result.output
    assert DEMO_PROJECT_NAME in result.output


def test_create_and_switch(initialized):
    result = initialized("project", "create", "Alpha", "--mode", "agile")
    assert result.exit_code == 0, result.output
    assert "Project created: Alpha" in result.output

    result = initialized("project", "switch", DEMO_PROJECT_ID)
    assert result.exit_code == 0
    assert f"Current project: {DEMO_PROJECT_ID}" in result.output


def test_create_rejects_unknown_mode(initialized):
    result = initialized("project", "create", "Alpha", "--mode", "kanban")
    assert result.exit_code != 0


def test_switch_unknown_project_fails(initialized):
    result = initialized("project", "switch", "project-missing")

    assert result.exit_code == 1
    assert "Error: projects not found: project-missing" in result.output


def test_export_to_stdout(initialized):
    result = initialized("project", "export", DEMO_PROJECT_ID)

    assert result.exit_code == 0, result.output
    doc = json.loads(result.output)
    assert doc["id"] == DEMO_PROJECT_ID
    assert doc["schemaVersion"] == 2


def test_export_then_import(initialized, tmp_path):
    target = tmp_path / "demo.json"

    result = initialized("project", "export", DEMO_PROJECT_ID, "--output", str(target))
    assert result.exit_code == 0, result.output
    assert json.loads(target.read_text())["name"] == DEMO_PROJECT_NAME

    result = initialized("project", "import", str(target))
    assert result.exit_code == 0, result.output
    assert "Imported project project-" in result.output


def test_import_invalid_document(initialized, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"name": "No data", "mode": "waterfall"}))

    result = initialized("project", "import", str(bad))

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_check_clean_project(initialized):
    result = initialized("project", "check", DEMO_PROJECT_ID)

    assert result.exit_code == 0, result.output
    assert "No violations found" in result.output


def test_duplicate_and_delete(initialized):
    result = initialized("project", "duplicate", DEMO_PROJECT_ID, "Demo copy")
    assert result.exit_code == 0, result.output
    assert "Duplicated" in result.output

    result = initialized("project", "delete", DEMO_PROJECT_ID, "--yes")
    assert result.exit_code == 0, result.output
    assert "Deleted project" in result.output

    result = initialized("project", "delete", DEMO_PROJECT_ID, "--yes")
    assert result.exit_code == 1
