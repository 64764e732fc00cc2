"""Command-line interface for workspace and project management."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pmflow.config import VALID_MODES, Config
from pmflow.core.manager import ProjectManager
from pmflow.core.templates import template_data
from pmflow.errors import PMFlowError
from pmflow.events.bus import EventBus
from pmflow.storage.sqlite_store import SQLiteStore

T = TypeVar("T")


@asynccontextmanager
async def _open_manager(config: Config) -> AsyncIterator[ProjectManager]:
    store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
    await store.initialize()
    try:
        yield ProjectManager(store, EventBus(), config)
    finally:
        await store.close()


def _run(config: Config, action: Callable[[ProjectManager], Awaitable[T]]) -> T:
    """Run ``action`` against an open manager, turning pmflow errors into exit code 1."""

    async def _go() -> T:
        async with _open_manager(config) as manager:
            return await action(manager)

    try:
        return asyncio.run(_go())
    except PMFlowError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _require_workspace(config: Config) -> None:
    if not config.db_path.exists():
        click.echo(
            f"Error: No database at {config.db_path}. Run 'pmflow init' first.", err=True
        )
        sys.exit(1)


@click.group()
@click.version_option(package_name="pmflow")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False),
    default=None,
    help="Workspace directory (defaults to PMFLOW_WORKSPACE or ~/.pmflow)",
)
@click.pass_context
def main(ctx: click.Context, workspace: str | None) -> None:
    """pmflow: project state and consistency engine."""
    path = Path(workspace).expanduser().resolve() if workspace else None
    try:
        config = Config.load(path)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@main.command()
@click.option("--no-demo", is_flag=True, help="Do not create the demo project")
@click.pass_obj
def init(config: Config, no_demo: bool) -> None:
    """Initialize a new pmflow workspace."""
    if no_demo:
        config.create_demo_project = False
    config.save()

    created = _run(config, lambda manager: manager.ensure_demo_project())
    click.echo(f"Initialized workspace at {config.workspace_path}")
    click.echo(f"Database: {config.db_path}")
    if created:
        click.echo("Created demo project")


@main.command()
@click.pass_obj
def status(config: Config) -> None:
    """Show workspace status and the current project."""
    _require_workspace(config)

    async def _status(manager: ProjectManager) -> dict[str, Any]:
        stats = await manager.get_stats()
        current_id = stats.pop("current_project_id")
        stats["current"] = None
        if current_id:
            project = await manager.load_project(current_id)
            stats["current"] = project.metadata().to_response() | {"name": project.name}
        return stats

    stats = _run(config, _status)
    current = stats.pop("current")
    console = Console()
    console.print(
        Panel(
            f"Database: {stats['db_path']}\n"
            f"Projects: {stats['projects']}\n"
            f"Stored keys: {stats['keys']}",
            title="pmflow Workspace",
        )
    )
    if current:
        console.print(
            Panel(
                f"[bold]{current['name']}[/bold] ({current['id']})\n"
                f"Mode: {current['mode']}\n"
                f"Tasks: {current['tasks']}  Risks: {current['risks']}\n"
                f"Updated: {current['updated_at']}",
                title="Current Project",
            )
        )
    else:
        console.print("No current project")


@main.group()
def project() -> None:
    """Manage projects."""


@project.command("list")
@click.pass_obj
def list_projects(config: Config) -> None:
    """List projects in the workspace."""
    _require_workspace(config)

    async def _list(manager: ProjectManager):
        return await manager.list_projects(), await manager.current_project_id()

    projects, current_id = _run(config, _list)
    if not projects:
        click.echo("No projects")
        return

    table = Table(title="Projects")
    table.add_column("", style="green")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Mode", style="magenta")
    table.add_column("Tasks", justify="right")
    table.add_column("Risks", justify="right")
    table.add_column("Updated")
    for meta in projects:
        table.add_row(
            "*" if meta.id == current_id else "",
            meta.id,
            meta.name,
            meta.mode,
            str(meta.task_count),
            str(meta.risk_count),
            meta.updated_at,
        )
    Console().print(table)


@project.command("create")
@click.argument("name")
@click.option("--description", default="", help="Project description")
@click.option("--mode", type=click.Choice(sorted(VALID_MODES)), default=None)
@click.option(
    "--template/--empty",
    default=True,
    help="Seed the default phases for the mode (default) or start empty",
)
@click.pass_obj
def create_project(
    config: Config, name: str, description: str, mode: str | None, template: bool
) -> None:
    """Create a project and make it current."""
    _require_workspace(config)
    mode = mode or config.default_mode
    seed = template_data(mode) if template else None

    project_id = _run(
        config, lambda manager: manager.create_project(name, description, mode, seed)
    )
    Console().print(
        Panel(
            f"[green]✓[/green] Project created: {name}\nID: {project_id}\nMode: {mode}",
            title="Project Created",
        )
    )


@project.command("switch")
@click.argument("project_id")
@click.pass_obj
def switch_project(config: Config, project_id: str) -> None:
    """Make a project current."""
    _require_workspace(config)
    _run(config, lambda manager: manager.switch_project(project_id))
    click.echo(f"Current project: {project_id}")


@project.command("delete")
@click.argument("project_id")
@click.confirmation_option(prompt="Delete this project?")
@click.pass_obj
def delete_project(config: Config, project_id: str) -> None:
    """Delete a project."""
    _require_workspace(config)
    deleted = _run(config, lambda manager: manager.delete_project(project_id))
    if not deleted:
        click.echo(f"Error: projects not found: {project_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted project {project_id}")


@project.command("duplicate")
@click.argument("project_id")
@click.argument("new_name")
@click.pass_obj
def duplicate_project(config: Config, project_id: str, new_name: str) -> None:
    """Copy a project under a new name."""
    _require_workspace(config)
    new_id = _run(config, lambda manager: manager.duplicate_project(project_id, new_name))
    click.echo(f"Duplicated {project_id} as {new_id}")


@project.command("export")
@click.argument("project_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None)
@click.pass_obj
def export_project(config: Config, project_id: str, output: str | None) -> None:
    """Export a project document as JSON."""
    _require_workspace(config)
    doc = _run(config, lambda manager: manager.export_project(project_id))
    text = json.dumps(doc, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        click.echo(f"Exported {project_id} to {output}")
    else:
        click.echo(text)


@project.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_project(config: Config, path: str) -> None:
    """Import a project document exported earlier."""
    _require_workspace(config)
    text = Path(path).read_text(encoding="utf-8")
    new_id = _run(config, lambda manager: manager.import_project(text))
    click.echo(f"Imported project {new_id}")


@project.command("check")
@click.argument("project_id", required=False)
@click.pass_obj
def check_project(config: Config, project_id: str | None) -> None:
    """Report rule violations in a project (the current one by default)."""
    _require_workspace(config)

    async def _check(manager: ProjectManager) -> dict[str, list[dict[str, Any]]]:
        session = await manager.open_session(project_id)
        return session.check()

    findings = _run(config, _check)
    if not any(findings.values()):
        click.echo("No violations found")
        return

    table = Table(title="Rule Violations")
    table.add_column("Rule", style="cyan")
    table.add_column("Finding", style="red")
    for rule, found in findings.items():
        for item in found:
            table.add_row(rule, json.dumps(item))
    Console().print(table)
    sys.exit(1)
