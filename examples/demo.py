"""Walkthrough of a pmflow session: edit, commit, check and export.

Creates a temporary workspace, edits a waterfall project through a session,
shows the invariants rejecting bad edits, and round-trips the project through
export and import.
"""

import asyncio
import json
import tempfile
from pathlib import Path

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from pmflow.config import Config
from pmflow.core.manager import ProjectManager
from pmflow.core.templates import template_data
from pmflow.core.wbs import WBSDeletePolicy
from pmflow.errors import PMFlowError
from pmflow.events.bus import EventBus
from pmflow.storage.sqlite_store import SQLiteStore

console = Console()


def step_header(num: int, title: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold cyan]Step {num}:[/bold cyan] [yellow]{title}[/yellow]",
            border_style="cyan",
        )
    )


def display_json(data: dict | list, title: str | None = None) -> None:
    console.print(Panel(JSON(json.dumps(data, indent=2)), title=title, border_style="green"))


async def demo() -> None:
    workspace = Path(tempfile.mkdtemp(prefix="pmflow-demo-"))
    config = Config(workspace_path=workspace)
    store = SQLiteStore(config.db_path)
    await store.initialize()
    bus = EventBus()
    manager = ProjectManager(store, bus, config)

    async def log_event(event_type, data):
        console.print(f"  [dim]event[/dim] {event_type} {data.get('entity_id', '')}")

    bus.on_namespace("entity", log_event)

    step_header(1, "Create a waterfall project")
    project_id = await manager.create_project(
        "Website Relaunch", "Replace the marketing site", seed_data=template_data("waterfall")
    )
    console.print(f"  [green]✓[/green] Created {project_id}")

    step_header(2, "Edit through a session")
    session = await manager.open_session(actor="dana")
    task = session.add_task(title="Draft charter", phase_id="init", status="todo")
    session.update_task(task.id, status="done", assignee="Dana")
    risk = session.add_risk(title="Content freeze slips", probability="high", impact="critical")
    root = session.add_wbs_node(name="Website")
    design = session.add_wbs_node(name="Design", parent_id=root.id)
    session.add_wbs_node(name="Wireframes", parent_id=design.id)
    await manager.commit(session)
    console.print(f"  [green]✓[/green] Risk score: {risk.score}")

    history = Table(title="Task History (newest first)")
    history.add_column("Action", style="cyan")
    history.add_column("Old")
    history.add_column("New", style="yellow")
    for entry in session.history_for(task.id):
        history.add_row(entry.action, entry.old_value or "", entry.new_value or "")
    console.print(history)

    step_header(3, "Invariants reject bad edits")
    session.add_raci_entry(entity_type="task", entity_id=task.id, role="PM", responsibility="A")
    try:
        session.add_raci_entry(
            entity_type="task", entity_id=task.id, role="Sponsor", responsibility="A"
        )
    except PMFlowError as e:
        console.print(f"  [red]✗[/red] {e}")
    try:
        session.reorder_phases(["close", "init"])
    except PMFlowError as e:
        console.print(f"  [red]✗[/red] {e}")

    step_header(4, "Delete with cascade")
    session.delete_wbs_node(design.id, policy=WBSDeletePolicy.REPARENT)
    session.delete_phase("plan")
    await manager.commit(session)
    tree = Table(title="WBS after re-parenting")
    tree.add_column("Code", style="cyan")
    tree.add_column("Name")
    tree.add_column("Level", style="yellow")
    for node in session.data.wbs:
        tree.add_row(node.code, node.name, str(node.level))
    console.print(tree)
    display_json(session.check(), "Rule check")

    step_header(5, "Export and import")
    doc = await manager.export_project(project_id)
    copy_id = await manager.import_project(doc)
    console.print(f"  [green]✓[/green] Imported copy as {copy_id}")

    projects = Table(title="Projects")
    projects.add_column("ID", style="cyan")
    projects.add_column("Name")
    projects.add_column("Tasks", style="yellow")
    for meta in await manager.list_projects():
        projects.add_row(meta.id, meta.name, str(meta.task_count))
    console.print(projects)

    await store.close()
    console.print(f"\n[bold green]✓ Demo complete![/bold green] [dim]Workspace: {workspace}[/dim]\n")


if __name__ == "__main__":
    asyncio.run(demo())
